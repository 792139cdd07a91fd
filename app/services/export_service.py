import io
import logging
from typing import List, Sequence

import pandas as pd
from openpyxl.utils import get_column_letter

from app.services.aggregation import RecordKind, EXPENSE, INCOME

logger = logging.getLogger(__name__)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

UNCATEGORIZED = "Uncategorized"

# Per record kind: worksheet name, grouping column header, download filename
_SHEETS = {
    EXPENSE.key: ("Expenses", "Category", "expenses.xlsx"),
    INCOME.key: ("Incomes", "Source", "incomes.xlsx"),
}


def export_filename(kind: RecordKind) -> str:
    return _SHEETS[kind.key][2]


def records_to_dataframe(kind: RecordKind, records: Sequence) -> pd.DataFrame:
    """One row per record: Date, Name, Amount, Category/Source, Description, Images."""
    _, dimension_header, _ = _SHEETS[kind.key]
    columns = ["Date", "Name", "Amount", dimension_header, "Description", "Images"]

    rows: List[list] = []
    for record in records:
        dimension = getattr(record, kind.dimension_field)
        rows.append([
            record.date,
            record.name,
            record.amount,
            dimension.name if dimension is not None else UNCATEGORIZED,
            record.description or "",
            ", ".join(record.images or []),
        ])

    return pd.DataFrame(rows, columns=columns)


def build_workbook(kind: RecordKind, records: Sequence) -> bytes:
    """Render the records as a single-sheet .xlsx file."""
    sheet_name = _SHEETS[kind.key][0]
    df = records_to_dataframe(kind, records)

    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        df.to_excel(writer, sheet_name=sheet_name, index=False)

        # Widen columns to fit their longest value
        worksheet = writer.sheets[sheet_name]
        for idx, column in enumerate(df.columns, start=1):
            longest = max([len(str(v)) for v in df[column].tolist()] + [len(column)])
            worksheet.column_dimensions[get_column_letter(idx)].width = min(longest + 2, 60)

    logger.info(f"Built {sheet_name} workbook with {len(df)} rows")
    return buffer.getvalue()
