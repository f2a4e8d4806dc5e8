import logging
from typing import Literal

from langgraph.graph import StateGraph, START, END

from health_assistant.agents.state import PipelineServices, PipelineState
from health_assistant.agents.nodes.analysis import detect_language_node, analyze_node
from health_assistant.agents.nodes.generation import llm_node, knowledge_base_node
from health_assistant.agents.nodes.delivery import localize_node, persist_node

logger = logging.getLogger(__name__)


def route_from_analysis(state: PipelineState) -> Literal["generate", "knowledge_base"]:
    # LLM when configured, canned knowledge base answers otherwise
    return "generate" if state.get("use_llm") else "knowledge_base"


def build_graph() -> StateGraph:
    """Build the chat message workflow.

    Returns:
        Uncompiled StateGraph
    """
    workflow = StateGraph(PipelineState)

    # Nodes
    workflow.add_node("detect_language", detect_language_node)
    workflow.add_node("analyze", analyze_node)
    workflow.add_node("generate", llm_node)
    workflow.add_node("knowledge_base", knowledge_base_node)
    workflow.add_node("localize", localize_node)
    workflow.add_node("persist", persist_node)

    # Edges
    workflow.add_edge(START, "detect_language")
    workflow.add_edge("detect_language", "analyze")

    workflow.add_conditional_edges(
        "analyze",
        route_from_analysis,
        {
            "generate": "generate",
            "knowledge_base": "knowledge_base",
        },
    )

    workflow.add_edge("generate", "localize")
    workflow.add_edge("knowledge_base", "localize")
    workflow.add_edge("localize", "persist")
    workflow.add_edge("persist", END)

    logger.info("Graph built with all nodes and edges")
    return workflow


def create_graph():
    """Create the compiled graph.

    Each message is processed independently; conversation context comes from
    the chat store, so no checkpointer is attached.
    """
    return build_graph().compile()


async def run_pipeline(initial_state: PipelineState, services: PipelineServices, graph=None) -> dict:
    if graph is None:
        graph = create_graph()

    config = {"configurable": {"services": services}}
    return await graph.ainvoke(initial_state, config=config)
