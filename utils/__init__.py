"""Library CLI - Utilities Package

Helpers shared by the command-line shell:
- Output rendering in plain / json / rich modes (ui_helpers.py)
- Input validation for prompted fields (validators.py)
"""
