"""desk_todo: a single-user to-do list with reminders, a JSON mirror and LLM reports."""

__version__ = "0.1.0"
