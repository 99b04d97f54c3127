import dash
from dash import dcc, html, Input, Output, State, ctx, no_update, Patch, MATCH, ALL
from dash.exceptions import PreventUpdate
import dash_bootstrap_components as dbc
from datetime import datetime
import logging
import uuid

from config import Config
from services.visualization import ActionType, Gesture, SessionManager, VisualizationService
from services.visualization.models import NodeState
from services.visualization.renderer import indicator_class, render_topic_bubbles, subtree_style

# Set up logging
logging.basicConfig(level=Config.get_log_level())
logger = logging.getLogger(__name__)

# Visualization orchestration shared by all conversations
viz_service = VisualizationService()
session_manager = SessionManager()

# Initialize the Dash app
app = dash.Dash(
    __name__,
    external_stylesheets=[dbc.themes.DARKLY, dbc.icons.FONT_AWESOME],
    suppress_callback_exceptions=True,
    title="Conversational Analytics"
)

# Custom CSS for chat and chart styling
app.index_string = '''
<!DOCTYPE html>
<html>
    <head>
        {%metas%}
        <title>{%title%}</title>
        {%favicon%}
        {%css%}
        <style>
            body {
                background-color: #343a40 !important;
                color: #ffffff !important;
                font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', 'Roboto', sans-serif;
            }
            .chat-container {
                background-color: #2c2c2c;
                border-radius: 8px;
                border: 1px solid #404040;
            }
            .chat-message {
                padding: 16px 20px;
                border-bottom: 1px solid #404040;
                animation: fadeIn 0.3s ease-in;
            }
            .chat-message:last-child {
                border-bottom: none;
            }
            .user-message {
                background-color: #343a40;
            }
            .agent-message {
                background-color: #2c2c2c;
            }
            .chat-input-container {
                background-color: #2c2c2c;
                border-top: 1px solid #404040;
                padding: 20px;
                position: sticky;
                bottom: 0;
            }
            .chat-input {
                background-color: #404040 !important;
                border: 1px solid #555 !important;
                color: #ffffff !important;
                border-radius: 20px !important;
                padding: 12px 20px !important;
            }
            .send-button {
                border-radius: 20px !important;
                padding: 12px 24px !important;
                background-color: #007bff !important;
                border: none !important;
                white-space: nowrap !important;
                min-width: 80px !important;
            }
            .form-control, .form-select {
                background-color: #404040 !important;
                border: 1px solid #555 !important;
                color: #ffffff !important;
            }
            .result-set-input {
                font-family: monospace;
                font-size: 12px;
            }
            .chat-chart-container {
                background-color: #343a40;
                border: 1px solid #404040;
                border-radius: 8px;
                padding: 12px;
                margin-top: 12px;
            }
            .chart-action-btn {
                font-size: 12px !important;
            }
            .chart-loading {
                display: flex;
                align-items: center;
                padding: 20px;
            }
            .org-chart-container {
                overflow-x: auto;
                padding: 8px;
            }
            .org-subordinates {
                margin-left: 28px;
                padding-left: 12px;
                border-left: 1px dashed #555;
            }
            .org-chart-node {
                display: flex;
                align-items: center;
                background-color: #2c2c2c;
                border: 1px solid #404040;
                border-radius: 6px;
                padding: 6px 10px;
                margin: 4px 0;
                cursor: pointer;
                min-width: 220px;
            }
            .org-chart-node.manager {
                border-color: #007bff;
            }
            .org-chart-node.truncated {
                opacity: 0.5;
                cursor: default;
            }
            .node-avatar {
                width: 32px;
                height: 32px;
                border-radius: 50%;
                background-color: #007bff;
                display: flex;
                align-items: center;
                justify-content: center;
                font-weight: bold;
                margin-right: 10px;
            }
            .node-name {
                font-weight: 600;
            }
            .node-title, .node-department, .node-stats {
                font-size: 12px;
                color: #adb5bd;
            }
            .node-toggle {
                background: none;
                border: none;
                color: #adb5bd;
                margin-left: 6px;
            }
            .topic-evolution-container {
                display: flex;
                flex-wrap: wrap;
                gap: 10px;
                align-items: center;
            }
            .topic-bubble {
                border-radius: 50%;
                display: flex;
                flex-direction: column;
                align-items: center;
                justify-content: center;
                text-align: center;
                font-size: 11px;
                background-color: #495057;
            }
            .topic-bubble.trending-up {
                background-color: #28a745;
            }
            .topic-bubble.trending-down {
                background-color: #dc3545;
            }
            @keyframes fadeIn {
                from { opacity: 0; transform: translateY(10px); }
                to { opacity: 1; transform: translateY(0); }
            }
        </style>
    </head>
    <body>
        {%app_entry%}
        <footer>
            {%config%}
            {%scripts%}
            {%renderer%}
        </footer>
    </body>
</html>
'''

INTENT_OPTIONS = [
    {"label": "Organization Hierarchy", "value": "organization_hierarchy"},
    {"label": "Collaboration Analysis", "value": "collaboration_analysis"},
    {"label": "Meeting Frequency", "value": "meeting_frequency"},
    {"label": "Department Analysis", "value": "department_analysis"},
    {"label": "Topic Analysis", "value": "topic_analysis"},
    {"label": "General Query", "value": "general_query"},
]


def serve_layout():
    """Layout factory so every page load gets its own visualization session"""
    return dbc.Container([
        # Header
        dbc.Row([
            dbc.Col([
                html.H1("Conversational Analytics", className="text-center mb-3", style={"color": "#ffffff"}),
                html.Hr(style={"borderColor": "#404040"})
            ])
        ]),

        # Main Chat Interface
        dbc.Row([
            dbc.Col([
                dbc.Card([
                    dbc.CardBody([
                        # Chat messages display
                        html.Div([], id="chat-messages", className="chat-container", style={
                            "height": "600px",
                            "overflowY": "auto",
                            "marginBottom": "0"
                        }),

                        # Chat input area
                        html.Div([
                            dbc.Row([
                                dbc.Col([
                                    html.Span("Intent: ", className="text-light me-2"),
                                    dbc.Select(
                                        id="intent-select",
                                        options=INTENT_OPTIONS,
                                        value="general_query",
                                        size="sm",
                                        style={"display": "inline-block", "width": "auto", "minWidth": "200px"}
                                    )
                                ], md=8, className="d-flex align-items-center"),
                                dbc.Col([
                                    dbc.Button([
                                        html.I(className="fas fa-broom me-2"),
                                        "Clear conversation"
                                    ], id="clear-button", size="sm", color="secondary", outline=True)
                                ], md=4, className="d-flex justify-content-end")
                            ], className="mb-2"),

                            dbc.Textarea(
                                id="result-set-input",
                                placeholder='Result set as JSON, e.g. {"people": [...], "meetings": [...]}',
                                className="result-set-input mb-2",
                                rows=4
                            ),

                            # Chat input
                            dbc.InputGroup([
                                dbc.Input(
                                    id="chat-input",
                                    placeholder="Ask about meetings, people and topics...",
                                    type="text",
                                    className="chat-input",
                                    style={"flex": "1"}
                                ),
                                dbc.Button([
                                    html.I(className="fas fa-paper-plane me-2"),
                                    "Send"
                                ], id="send-button", className="send-button ms-2")
                            ])
                        ], className="chat-input-container")
                    ])
                ], className="border-0", style={"backgroundColor": "transparent"})
            ], md=10, className="mx-auto")
        ]),

        # Visualization session of this page
        dcc.Store(id="session-store", data=uuid.uuid4().hex),

        # Follow-up query raised by a chart interaction, submitted like a typed message
        dcc.Store(id="pending-query", data=None)

    ], fluid=True, style={"backgroundColor": "#343a40", "minHeight": "100vh", "padding": "20px"})


app.layout = serve_layout


def _message_header(author, css_class):
    return html.Div([
        html.Strong(author, className=css_class),
        html.Span(f" • {datetime.now().strftime('%H:%M')}", className="text-muted ms-2")
    ], className="mb-1")


def _triggered_id():
    """Id of the component that fired the callback, ignoring initial calls and freshly mounted components"""
    if not ctx.triggered or not ctx.triggered[0].get("value"):
        raise PreventUpdate
    return ctx.triggered_id


def chart_update(session, triggered):
    """
    Apply a canvas chart trigger to its session.

    Args:
        session: VisualizationSession owning the chart
        triggered: Pattern id of the render timer or chart action that fired

    Returns:
        Tuple of (figure or None when unchanged, status message)
    """
    component_id = triggered["component"]

    if triggered["type"] == "render-timer":
        return session.run_deferred(component_id), ""

    result = session.handle(Gesture(triggered["action"], component_id))
    figure = session.current_figure(component_id) if result.figure_changed else None
    return figure, result.message


def org_tree_outputs(node_states, subtree_outputs, icon_outputs):
    """
    Subtree styles and chevron classes for an organization component.

    The output lists are `ctx.outputs_list` entries; values come back in the same order.
    """
    def state_of(output):
        return node_states.get(output["id"]["node"], NodeState.VISIBLE)

    styles = [subtree_style(state_of(output)) for output in subtree_outputs]
    icons = [indicator_class(state_of(output)) for output in icon_outputs]
    return styles, icons


def chat_exchange(question, intent, result_set_json, session_id):
    """User message and agent answer, with its visualizations, as chat markup."""
    user_message = html.Div([
        _message_header("You", "text-primary"),
        html.Div(question, className="text-light")
    ], className="chat-message user-message")

    fragments = []
    valid, result_set = viz_service.validate_result_set(result_set_json)
    if not valid:
        agent_response = f"❌ {result_set}"
    else:
        with session_manager.locked(session_id) as session:
            success, result = viz_service.process_visualization_request(intent, result_set, session)

        if success:
            agent_response = viz_service.describe(result['descriptors'])
            fragments = result['fragments']
        else:
            agent_response = f"❌ {result}"

    agent_message = html.Div([
        _message_header("Agent", "text-success"),
        html.Div(agent_response, className="text-light"),
        *fragments
    ], className="chat-message agent-message")

    return [user_message, agent_message]


# Chat submit: answer typed messages and follow-up queries from chart interactions
@app.callback(
    [Output("chat-messages", "children"),
     Output("chat-input", "value")],
    [Input("send-button", "n_clicks"),
     Input("chat-input", "n_submit"),
     Input("pending-query", "data")],
    [State("chat-input", "value"),
     State("intent-select", "value"),
     State("result-set-input", "value"),
     State("session-store", "data")],
    prevent_initial_call=True
)
def update_chat(n_clicks, n_submit, pending_query, input_value, intent, result_set_json, session_id):
    if ctx.triggered_id == "pending-query":
        question = (pending_query or {}).get("query")
        clear_input = no_update
    else:
        question = input_value
        clear_input = ""

    if not question:
        raise PreventUpdate

    messages = Patch()
    messages.extend(chat_exchange(question, intent, result_set_json, session_id))
    return messages, clear_input


# Canvas charts: deferred first draw and header actions
@app.callback(
    [Output({"type": "chart-graph", "component": MATCH}, "figure"),
     Output({"type": "chart-status", "component": MATCH}, "children")],
    [Input({"type": "render-timer", "component": MATCH}, "n_intervals"),
     Input({"type": "chart-action", "component": MATCH, "action": ALL}, "n_clicks")],
    [State("session-store", "data")]
)
def update_chart(n_intervals, action_clicks, session_id):
    triggered = _triggered_id()

    with session_manager.locked(session_id) as session:
        figure, message = chart_update(session, triggered)

    return (figure if figure is not None else no_update), message or no_update


# Organization tree: subtree toggles and expand/collapse/export
@app.callback(
    [Output({"type": "org-subordinates", "component": MATCH, "node": ALL}, "style"),
     Output({"type": "org-toggle-icon", "component": MATCH, "node": ALL}, "className"),
     Output({"type": "org-status", "component": MATCH}, "children")],
    [Input({"type": "org-toggle", "component": MATCH, "node": ALL}, "n_clicks"),
     Input({"type": "org-action", "component": MATCH, "action": ALL}, "n_clicks")],
    [State("session-store", "data")]
)
def update_org_tree(toggle_clicks, action_clicks, session_id):
    triggered = _triggered_id()
    component_id = triggered["component"]

    with session_manager.locked(session_id) as session:
        if triggered["type"] == "org-toggle":
            gesture = Gesture(ActionType.TOGGLE, component_id, triggered["node"])
        else:
            gesture = Gesture(triggered["action"], component_id)

        result = session.handle(gesture)
        component = session.components.get(component_id)
        if component is None:
            raise PreventUpdate
        states = dict(component.node_states)

    styles, icons = org_tree_outputs(states, ctx.outputs_list[0], ctx.outputs_list[1])
    return styles, icons, result.message or no_update


# Topic evolution filters
@app.callback(
    Output({"type": "topic-bubbles", "component": MATCH}, "children"),
    [Input({"type": "topic-action", "component": MATCH, "action": ALL}, "n_clicks")],
    [State("session-store", "data")]
)
def filter_topics(action_clicks, session_id):
    triggered = _triggered_id()
    component_id = triggered["component"]

    with session_manager.locked(session_id) as session:
        result = session.handle(Gesture(triggered["action"], component_id))
        component = session.components.get(component_id)
        if not result.handled or component is None:
            raise PreventUpdate
        topics = component.data.get('topics', [])
        trend = component.view_state.get('trend', 'all')

    return render_topic_bubbles(topics, trend)


# Person clicks: send a question about that person to the conversation
@app.callback(
    Output("pending-query", "data"),
    [Input({"type": "org-node", "component": ALL, "node": ALL}, "n_clicks")],
    [State("session-store", "data")],
    prevent_initial_call=True
)
def ask_about_person(node_clicks, session_id):
    triggered = _triggered_id()

    with session_manager.locked(session_id) as session:
        session.handle(Gesture(ActionType.NODE_CLICK, triggered["component"], triggered["node"]))
        queries = session.conversation.drain()

    if not queries:
        raise PreventUpdate
    # Nonce so repeating the same question still fires the chat callback
    return {"query": queries[-1], "nonce": uuid.uuid4().hex}


# Clear conversation: destroy every chart of the session
@app.callback(
    Output("chat-messages", "children", allow_duplicate=True),
    [Input("clear-button", "n_clicks")],
    [State("session-store", "data")],
    prevent_initial_call=True
)
def clear_conversation(n_clicks, session_id):
    destroyed = session_manager.end(session_id)
    logger.info(f"Cleared conversation {session_id}, {destroyed} charts destroyed")
    return []


if __name__ == "__main__":
    app.run(debug=Config.DEBUG, host=Config.HOST, port=Config.PORT)
