"""
Plotly chart generation module for the canvas-backed chat visualizations.
"""

import plotly.graph_objects as go
import plotly.express as px
import pandas as pd
from typing import Dict, Any, Optional
import logging

from config import Config
from .models import VisualizationType

logger = logging.getLogger(__name__)

STRENGTH_SIZES = {'weak': 6, 'medium': 12, 'strong': 20}

TIMELINE_PERIODS = {'day': 'D', 'week': 'W', 'month': 'M', 'quarter': 'Q'}

DEPARTMENT_METRICS = {
    'meetings': ('meetingCount', 'Meetings'),
    'people': ('peopleCount', 'People'),
    'collaboration': ('collaborationScore', 'Collaboration'),
}


class ChartHandle:
    """Native handle for a rendered Plotly chart."""

    def __init__(self, figure: go.Figure):
        self.figure = figure
        self.destroyed = False

    def update(self, figure: go.Figure):
        """Replace the drawn figure in place."""
        if self.destroyed:
            logger.debug("Ignoring update on a destroyed chart")
            return
        self.figure = figure

    def destroy(self):
        self.figure = None
        self.destroyed = True


def aggregate_timeline(timeline, granularity: str = 'day') -> pd.DataFrame:
    """
    Sum meeting counts per period.

    Args:
        timeline: Records with a `date` and an optional `count` (defaults to 1)
        granularity: One of day, week, month, quarter

    Returns:
        DataFrame with `period` (period start) and `count` columns, sorted by period
    """
    df = pd.DataFrame([point for point in timeline or [] if isinstance(point, dict)])
    if df.empty or 'date' not in df.columns:
        return pd.DataFrame({'period': pd.Series(dtype='datetime64[ns]'), 'count': pd.Series(dtype='float64')})

    if 'count' not in df.columns:
        df['count'] = 1
    df['count'] = pd.to_numeric(df['count'], errors='coerce').fillna(1)
    df['date'] = pd.to_datetime(df['date'], errors='coerce', utc=True, format='ISO8601')
    unparsed = int(df['date'].isna().sum())
    if unparsed:
        logger.warning(f"Dropping {unparsed} timeline points with unparseable dates")
    df = df.dropna(subset=['date'])

    period = TIMELINE_PERIODS.get(granularity, 'D')
    df['period'] = df['date'].dt.tz_convert(None).dt.to_period(period).dt.start_time

    return df.groupby('period', as_index=False)['count'].sum().sort_values('period').reset_index(drop=True)


class PlotlyGenerator:
    """Generates Plotly charts for chat visualizations."""

    def __init__(self, frequency_threshold: Optional[int] = None):
        self.frequency_threshold = (
            Config.COLLABORATION_FREQUENCY_THRESHOLD if frequency_threshold is None else frequency_threshold
        )
        self.color_palette = [
            'rgba(102, 126, 234, 0.8)', 'rgba(72, 187, 120, 0.8)', 'rgba(237, 137, 54, 0.8)',
            'rgba(245, 101, 101, 0.8)', 'rgba(159, 122, 234, 0.8)', 'rgba(56, 178, 172, 0.8)'
        ]

        # Default styling for dark theme (matching the app)
        self.default_layout = {
            'paper_bgcolor': 'rgba(0,0,0,0)',
            'plot_bgcolor': 'rgba(0,0,0,0)',
            'font': {'color': '#ffffff', 'family': 'Arial, sans-serif'},
            'title': {'font': {'size': 18, 'color': '#ffffff'}},
            'xaxis': {
                'gridcolor': '#404040',
                'linecolor': '#404040',
                'tickcolor': '#404040',
                'title': {'font': {'color': '#ffffff'}}
            },
            'yaxis': {
                'gridcolor': '#404040',
                'linecolor': '#404040',
                'tickcolor': '#404040',
                'title': {'font': {'color': '#ffffff'}}
            },
            'legend': {
                'font': {'color': '#ffffff'},
                'bgcolor': 'rgba(0,0,0,0.5)'
            },
            'margin': {'l': 40, 'r': 20, 't': 40, 'b': 40}
        }

    def generate_chart(self, chart_type: VisualizationType, data: Dict[str, Any],
                       view_state: Optional[Dict[str, Any]] = None) -> go.Figure:
        """
        Generate a Plotly chart for a visualization type.

        Args:
            chart_type: Visualization type to draw
            data: Transformed data for the type (see transformers)
            view_state: Interaction state of the component (filter, granularity, metric)

        Returns:
            Plotly Figure object
        """
        view_state = view_state or {}
        logger.info(f"Generating {chart_type} chart with view state: {view_state}")

        try:
            if chart_type == VisualizationType.COLLABORATION:
                return self._create_collaboration_chart(data, view_state)
            elif chart_type == VisualizationType.TIMELINE:
                return self._create_timeline_chart(data, view_state)
            elif chart_type == VisualizationType.DEPARTMENTS:
                return self._create_department_chart(data, view_state)
            else:
                return self._create_table(data, view_state)

        except Exception as e:
            logger.error(f"Error generating {chart_type}: {str(e)}")
            # Return a simple table as fallback
            return self._create_table(data, view_state)

    def _create_collaboration_chart(self, data: Dict[str, Any], view_state: Dict[str, Any]) -> go.Figure:
        """Bubble grid of relationships, one bubble per pair of collaborators."""
        relationships = list(data.get('relationships', []))
        mode = view_state.get('filter', 'none')

        if mode == 'frequency':
            relationships = [r for r in relationships if r.meeting_count >= self.frequency_threshold]

        departments = {}
        for node in data.get('nodes', []):
            if isinstance(node, dict) and node.get('name'):
                departments[node['name']] = node.get('department') or 'Unknown'

        df = pd.DataFrame([
            {
                'x': index % 10,
                'y': index // 10,
                'size': STRENGTH_SIZES[rel.strength],
                'label': f"{rel.person1} ↔ {rel.person2}: {rel.meeting_count} meetings",
                'department': departments.get(rel.person1, 'Unknown'),
            }
            for index, rel in enumerate(relationships)
        ])

        if df.empty:
            return self._create_empty_chart("No collaboration data")

        if mode == 'department':
            fig = px.scatter(df, x='x', y='y', size='size', color='department',
                             hover_name='label', hover_data={'x': False, 'y': False, 'size': False},
                             color_discrete_sequence=self.color_palette)
        else:
            fig = px.scatter(df, x='x', y='y', size='size',
                             hover_name='label', hover_data={'x': False, 'y': False, 'size': False},
                             color_discrete_sequence=self.color_palette)

        fig.update_layout(**self.default_layout)
        fig.update_layout(showlegend=(mode == 'department'))
        fig.update_xaxes(visible=False)
        fig.update_yaxes(visible=False, autorange='reversed')
        return fig

    def _create_timeline_chart(self, data: Dict[str, Any], view_state: Dict[str, Any]) -> go.Figure:
        """Meetings per period as a filled line."""
        granularity = view_state.get('granularity', 'day')
        df = aggregate_timeline(data.get('timeline', []), granularity)

        if df.empty:
            return self._create_empty_chart("No meetings to plot")

        fig = px.line(df, x='period', y='count', markers=True,
                      labels={'period': granularity.title(), 'count': 'Meetings'},
                      color_discrete_sequence=self.color_palette)
        fig.update_traces(fill='tozeroy', line={'shape': 'spline'})

        fig.update_layout(**self.default_layout)
        fig.update_yaxes(rangemode='tozero', dtick=1)
        return fig

    def _create_department_chart(self, data: Dict[str, Any], view_state: Dict[str, Any]) -> go.Figure:
        """Donut of departments by the selected metric."""
        column, label = DEPARTMENT_METRICS.get(view_state.get('metric', 'meetings'), DEPARTMENT_METRICS['meetings'])

        df = pd.DataFrame([d for d in data.get('departments', []) if isinstance(d, dict)])
        if df.empty or 'name' not in df.columns:
            return self._create_empty_chart("No department statistics")

        for col in ('meetingCount', 'peopleCount', 'collaborationScore'):
            if col not in df.columns:
                df[col] = 0
            df[col] = pd.to_numeric(df[col], errors='coerce').fillna(0)

        fig = px.pie(df, names='name', values=column, hole=0.5,
                     color_discrete_sequence=self.color_palette)
        fig.update_traces(
            customdata=df[['meetingCount', 'peopleCount']].to_numpy(),
            hovertemplate="%{label}: %{customdata[0]} meetings (%{customdata[1]} people)<extra></extra>",
            marker={'line': {'color': '#ffffff', 'width': 2}},
        )

        fig.update_layout(**self.default_layout)
        fig.update_layout(legend_title_text=label)
        return fig

    def _create_empty_chart(self, message: str) -> go.Figure:
        fig = go.Figure()
        fig.add_annotation(text=message, showarrow=False, font={'color': '#a0aec0'})
        fig.update_layout(**self.default_layout)
        fig.update_xaxes(visible=False)
        fig.update_yaxes(visible=False)
        return fig

    def _create_table(self, data: Any, view_state: Dict[str, Any]) -> go.Figure:
        """Create a table view as fallback."""
        records = []
        if isinstance(data, dict):
            for value in data.values():
                if isinstance(value, list):
                    records = value
                    break

        display_data = pd.DataFrame([r if isinstance(r, dict) else {'value': str(r)} for r in records]).head(100)

        fig = go.Figure(data=[go.Table(
            header=dict(
                values=list(display_data.columns),
                fill_color='#404040',
                font=dict(color='white', size=12),
                align="left"
            ),
            cells=dict(
                values=[display_data[col].astype(str) for col in display_data.columns],
                fill_color='#2c2c2c',
                font=dict(color='white', size=11),
                align="left"
            )
        )])

        fig.update_layout(**self.default_layout)
        return fig
