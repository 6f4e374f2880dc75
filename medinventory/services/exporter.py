"""Turn export tables into CSV text or PDF documents."""

from pathlib import Path
from typing import Union

from fpdf import FPDF
from fpdf.errors import FPDFException

from ..models.summary import ExportTable
from ..utils.exceptions import ExportError

# Name, Quantity, ExpiryDate
PDF_COLUMN_WIDTHS = (100, 35, 45)


def render_csv(table: ExportTable) -> str:
    """
    Render a table as CSV text.

    Values are joined with commas as-is; values that themselves contain
    commas are not quoted.
    """
    lines = [",".join(table.header)]
    lines.extend(",".join(str(cell) for cell in row) for row in table.rows)
    return "\n".join(lines)


def render_pdf(table: ExportTable, title: str = "Medicine Inventory") -> bytes:
    """
    Render a table as a single-table PDF document.

    Raises:
        ExportError: If a value cannot be drawn with the built-in fonts
    """
    pdf = FPDF()
    pdf.add_page()

    try:
        pdf.set_font("Helvetica", style="B", size=18)
        pdf.cell(0, 12, title)
        pdf.ln(16)

        pdf.set_font("Helvetica", style="B", size=12)
        pdf.set_fill_color(33, 150, 243)
        pdf.set_text_color(255, 255, 255)
        for width, heading in zip(PDF_COLUMN_WIDTHS, table.header):
            pdf.cell(width, 9, heading, border=1, fill=True)
        pdf.ln()

        pdf.set_font("Helvetica", size=12)
        pdf.set_text_color(0, 0, 0)
        for row in table.rows:
            for width, cell in zip(PDF_COLUMN_WIDTHS, row):
                pdf.cell(width, 8, str(cell), border=1)
            pdf.ln()

        return bytes(pdf.output())
    except FPDFException as e:
        raise ExportError(f"PDF rendering failed: {str(e)}", details={"error": str(e)})


def write_export(table: ExportTable, path: Union[str, Path], title: str = "Medicine Inventory") -> Path:
    """
    Write ``table`` to ``path`` as CSV or PDF depending on the table format.

    Returns:
        The path written
    """
    path = Path(path)
    try:
        if table.format == "csv":
            path.write_text(render_csv(table), encoding="utf-8")
        else:
            path.write_bytes(render_pdf(table, title=title))
    except OSError as e:
        raise ExportError(f"Could not write {path}: {str(e)}", details={"path": str(path)})
    return path
