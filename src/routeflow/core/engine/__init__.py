# src/routeflow/core/engine/__init__.py
"""
Compilação e execução de workflows.

    - planner → compile_plan / ExecutionPlan / NodeStage
    - stage   → run_stage (contrato reader → processor → writer)
    - engine  → Engine / RunResult
"""
