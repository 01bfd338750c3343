"""Editor session state.

Import from submodules directly:

    from flowcanvas.editor.session import EditorSession
    from flowcanvas.editor.generation import GenerationGate
"""
