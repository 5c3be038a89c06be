"""Command-line interface for receipt classification.

Usage:
    splitsmart classify <receipt.json> [--engine batch_llm] [--preset conservative] [--json]
    splitsmart key status|set|delete
    splitsmart engine
    splitsmart serve [--host] [--port]
"""
