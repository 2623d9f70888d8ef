"""
Workflow Builder

Graph engine behind a visual workflow editor: typed nodes, directed edges,
structural validation, undo/redo history, auto-layout, import/export and
persistence of the edited workflow.
"""

__version__ = "1.0.0"
