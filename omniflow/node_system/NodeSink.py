import logging

from omniflow.models.factory.Nodes import NodeKind
from omniflow.node_system.Handler import Handler
from omniflow.util import const
from omniflow.util.js_values import to_display_string
from omniflow.util.template_parser import HTML_OUTPUT_TEMPLATE, MARKDOWN_OUTPUT_TEMPLATE, template_parse

logger = logging.getLogger(__name__)

FORMAT_TEMPLATES = {
    'Markdown': MARKDOWN_OUTPUT_TEMPLATE,
    'HTML': HTML_OUTPUT_TEMPLATE,
}


class NodeTextOutput(Handler):
    KIND = NodeKind.SINK
    NAME = const.TEXT_OUTPUT

    async def process(self, inputs):
        text = inputs.get('text')
        if text is None:
            text = ''
        output_format = self.configured('format', 'Plain')

        display = {
            'displayText': text,
            'format': output_format,
        }
        if output_format in FORMAT_TEMPLATES:
            display['formattedText'] = template_parse(FORMAT_TEMPLATES[output_format],
                                                      {'text': to_display_string(text)})
        return display


class NodeChartOutput(Handler):
    KIND = NodeKind.SINK
    NAME = const.CHART_OUTPUT

    async def process(self, inputs):
        chart_data = inputs.get('data')
        if chart_data is None:
            chart_data = []
        chart_type = self.configured('type', 'Bar')
        title = self.configured('title', 'Chart')

        return {
            'chartData': chart_data,
            'chartType': chart_type,
            'title': title,
            'visualization': {
                'type': chart_type,
                'title': title,
                'data': chart_data,
                'config': {
                    'showLegend': True,
                    'showGrid': True,
                    'animated': True,
                },
            },
        }
