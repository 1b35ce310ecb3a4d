from __future__ import annotations

CHANGE_REQUEST_VARIABLE = "change_request_file_path"
STATE_FILE_SUFFIX = ".step"

DEFAULT_PROMPT_PREFIX = "Please execute the following step in the workflow: "
NO_INSTRUCTIONS = "No specific instructions provided."

DEFAULT_CONFIG_FILE = "changeflow.yaml"
