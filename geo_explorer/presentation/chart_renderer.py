import base64
import logging
from io import BytesIO
from typing import Optional

import matplotlib
matplotlib.use('Agg')  # Non-interactive backend for server environments
import matplotlib.pyplot as plt

from geo_explorer.models import ChartData
from geo_explorer.presentation.chart_view import build_bar_chart

logger = logging.getLogger("geo_explorer.chart")


class KnowledgeChartRenderer:
    """
    Render knowledge chart data as a base64-encoded PNG bar chart.

    The image mirrors the interactive chart: bars in supplied order, the
    same value domain and the same K/M/B tick labels.
    """

    def __init__(self):
        self.figure_size = (7, 4.8)
        self.dpi = 100
        self.bar_color = '#22d3ee'  # Cyan
        self.edge_color = '#8b5cf6'  # Violet
        self.background = '#1a202c'
        self.text_color = '#e5e7eb'

    def render(self, chart: ChartData) -> Optional[str]:
        """
        Returns:
            Base64-encoded PNG image string, or None if the chart has no data
        """
        view = build_bar_chart(chart)
        if view is None:
            logger.warning(f"No data to chart for '{chart.title}'")
            return None

        try:
            logger.info(f"Rendering bar chart '{view.title}' with {len(view.bars)} bars")

            fig, ax = plt.subplots(figsize=self.figure_size, dpi=self.dpi)
            fig.patch.set_facecolor(self.background)
            ax.set_facecolor(self.background)

            labels = [bar.label for bar in view.bars]
            values = [bar.value for bar in view.bars]
            positions = range(len(labels))
            ax.bar(positions, values, color=self.bar_color, alpha=0.8, edgecolor=self.edge_color, linewidth=1)

            ax.set_xticks(list(positions))
            ax.set_xticklabels(labels, rotation=45, ha='right', color=self.text_color, fontsize=9)

            if view.domain_max > view.domain_min:
                ax.set_ylim(view.domain_min, view.domain_max)
            ax.set_yticks([tick.value for tick in view.ticks])
            ax.set_yticklabels([tick.label for tick in view.ticks], color=self.text_color, fontsize=9)

            if view.x_axis_label:
                ax.set_xlabel(view.x_axis_label, color=self.text_color)
            if view.y_axis_label:
                ax.set_ylabel(view.y_axis_label, color=self.text_color)
            ax.set_title(view.title, color=self.text_color, fontsize=13, fontweight='bold', pad=12)

            ax.yaxis.grid(True, linestyle='--', alpha=0.2)
            ax.set_axisbelow(True)
            for spine in ax.spines.values():
                spine.set_color('#374151')

            plt.tight_layout()

            buffer = BytesIO()
            plt.savefig(buffer, format='png', bbox_inches='tight', facecolor=fig.get_facecolor())
            buffer.seek(0)
            image_base64 = base64.b64encode(buffer.read()).decode('utf-8')

            buffer.close()
            plt.close(fig)

            logger.info(f"Chart rendered successfully ({len(image_base64)} bytes)")
            return image_base64

        except Exception as e:
            logger.exception(f"Error rendering chart: {e}")
            plt.close('all')
            return None


# Singleton instance
_chart_renderer = None


def get_chart_renderer() -> KnowledgeChartRenderer:
    global _chart_renderer
    if _chart_renderer is None:
        _chart_renderer = KnowledgeChartRenderer()
    return _chart_renderer


def render_chart_image(chart: ChartData) -> Optional[str]:
    """Convenience wrapper around the shared renderer."""
    return get_chart_renderer().render(chart)


