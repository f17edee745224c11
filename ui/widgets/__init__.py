from ui.widgets.text_view import TextView

__all__ = ["TextView"]
