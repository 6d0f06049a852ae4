"""Statement export package."""

from ledgerbook.export.statement import (
    CustomerStatement,
    StatementLine,
    build_statement,
    build_statement_line,
    render_statement_text,
)

__all__ = [
    "CustomerStatement",
    "StatementLine",
    "build_statement",
    "build_statement_line",
    "render_statement_text",
]
