"""Export module for JSON reports."""
from export.json_exporter import difference_to_dict, export_json, result_to_dict

__all__ = ["difference_to_dict", "export_json", "result_to_dict"]
