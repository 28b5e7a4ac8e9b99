from .json import JsonListener, export_json, format_text
from .rich import RichListener

__all__ = ["JsonListener", "RichListener", "export_json", "format_text"]
