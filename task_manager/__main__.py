# task_manager/__main__.py
"""Run the API server with ``python -m task_manager``."""

from task_manager.main import run

run()
