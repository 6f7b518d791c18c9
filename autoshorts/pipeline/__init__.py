"""
Production pipeline.

Stages live in autoshorts.pipeline.stages; the LangGraph orchestrator
that sequences them lives in autoshorts.pipeline.graph.
"""
