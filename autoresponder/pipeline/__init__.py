"""
Review response pipeline.

Core workflow components:
- state.py:           ResponseState TypedDict
- graph.py:           Graph wiring and compiled workflow
- nodes.py:           Node implementations bound to a PipelineContext
- processor.py:       Runs the graph; approve / reject actions
- events.py:          Storefront event intake and held-review backfill
"""
