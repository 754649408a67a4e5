"""
fileagent - Interactive terminal agent that lets a hosted model work on local files.

The model is offered three tools and decides when to call them:
- read_file: read a text file
- list_files: list a directory tree
- edit_file: replace text in a file, or create a new one

Example usage:
    $ fileagent chat
    $ fileagent chat --backend ollama --model qwen2.5:7b
    $ fileagent tools
"""

__version__ = "0.1.0"
__author__ = "fileagent Contributors"

__all__ = [
    "__version__",
    "__author__",
]
