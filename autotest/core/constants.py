"""
Constants
=========
Fixed values shared by the prompt builder, the LLM client and the CLI.
"""

# Chat models the prompt was tuned against. Other names are allowed
# (OpenAI-compatible gateways) but logged as a warning.
SUPPORTED_MODELS = ("gpt-3.5-turbo", "gpt-3.5-turbo-0301", "gpt-4")

# Server-sent event framing for streamed chat completions
STREAM_DATA_PREFIX = "data: "
STREAM_DONE = "[DONE]"

# Generated test files are named <name>.test<ext>
TEST_FILE_MARKER = ".test"

# Directories never walked when the input is a directory
IGNORED_DIRECTORIES = frozenset({
    "node_modules", "__pycache__", "venv", ".venv", "dist", "build",
})
