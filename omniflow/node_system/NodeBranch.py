import functools
import json
import logging

from omniflow.models.factory.Nodes import NodeKind
from omniflow.node_system.Handler import Handler
from omniflow.util import const
from omniflow.util.condition_parser import Condition, evaluate_condition, parse_condition
from omniflow.util.js_values import to_display_string

logger = logging.getLogger(__name__)


@functools.lru_cache(maxsize=256)
def parsed_condition(text: str) -> Condition:
    return parse_condition(text)


class NodeIfCondition(Handler):
    """
    Evaluates the configured condition against the resolved `value` input.

    Output is always {'true': bool, 'false': not bool, '_debug': {...}};
    an expression that cannot be parsed or evaluated counts as false.
    """
    KIND = NodeKind.BRANCH
    NAME = const.IF_CONDITION

    async def process(self, inputs):
        condition_text = self.configured('condition', '')
        if not isinstance(condition_text, str):
            condition_text = to_display_string(condition_text)
        value = inputs.get('value')

        result = evaluate_condition(parsed_condition(condition_text), value)
        if self.debug:
            logger.debug("NodeIfCondition:%s %r with value=%r -> %s", self.node_id, condition_text, value, result)

        return {
            'true': result,
            'false': not result,
            '_debug': {
                'condition': condition_text,
                'value': value,
                'result': result,
            },
        }


class NodeSwitchCase(Handler):
    """One boolean output per case key, set where str(case) == str(value), plus 'default'."""
    KIND = NodeKind.BRANCH
    NAME = const.SWITCH_CASE

    async def process(self, inputs):
        value = inputs.get('value')
        cases = self.configured('cases', {})
        if isinstance(cases, str):
            try:
                cases = json.loads(cases)
            except json.JSONDecodeError:
                cases = None
        if not isinstance(cases, dict):
            logger.warning("NodeSwitchCase:%s cases are not an object of case -> value, routing to default",
                           self.node_id)
            cases = {}

        value_text = to_display_string(value)
        outputs = {}
        matched = False
        for case_key, case_value in cases.items():
            matches = to_display_string(case_value) == value_text
            outputs[case_key] = matches
            matched = matched or matches

        outputs['default'] = not matched
        outputs['_debug'] = {
            'value': value,
            'cases': cases,
            'matched': matched,
        }
        return outputs
