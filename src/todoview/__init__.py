"""todoview - browse, filter and complete tasks in a todo.txt file."""

__version__ = "0.1.0"
