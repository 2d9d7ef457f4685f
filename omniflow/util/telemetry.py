import functools
import inspect
import time
import logging

logger = logging.getLogger(__name__)

SENSITIVE_KEYS = {
    "api_key", "apikey", "private_key", "privatekey", "authorization", "password",
    "token", "bottoken", "accesstoken", "access_token", "bearer", "secret",
}


def _redact(value):
    """Recursively redact sensitive keys in nested structures."""
    if isinstance(value, dict):
        return {k: ("***" if str(k).lower() in SENSITIVE_KEYS else _redact(v)) for k, v in value.items()}
    if isinstance(value, list):
        return [_redact(v) for v in value]
    if isinstance(value, tuple):
        return tuple(_redact(v) for v in value)
    return value


def magic_telemetry(func):
    qualname = func.__qualname__.split('.')[0]
    if not inspect.iscoroutinefunction(func):
        raise TypeError(f"Function {qualname} is not a coroutine function. "
                        f"magic_telemetry can only be applied to coroutine functions.")

    @functools.wraps(func)
    async def wrapper(self, inputs, *args, **kwargs):
        debug = self.get_debug()
        start_time = time.monotonic()
        logger.info("Executing %s:%s...", qualname, self.node_id)
        if debug:
            logger.debug("Node %s:%s inputs: %s", qualname, self.node_id, _redact(inputs))
        try:
            result = await func(self, inputs, *args, **kwargs)
        except Exception as e:
            logger.info("%s:%s failed after %.4f seconds: %s",
                        qualname, self.node_id, time.monotonic() - start_time, e)
            raise
        execution_time = time.monotonic() - start_time
        logger.info("%s:%s execution time: %.4f seconds", qualname, self.node_id, execution_time)
        if debug:
            logger.debug("Node %s:%s outputs: %s", qualname, self.node_id,
                         _redact(getattr(result, 'output_data', result)))
        return result

    return wrapper
