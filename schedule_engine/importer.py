import io
import re
from datetime import date, datetime
from typing import Dict, Iterable, List, Mapping

import openpyxl
import pandas as pd
from pydantic import ValidationError

from .exceptions import TaskImportError
from .logger import logger
from .models import Dependency, Task

# Sheet header -> Task field. Headers are matched case-insensitively.
COLUMN_ALIASES = {
    "id": "id",
    "task id": "id",
    "name": "name",
    "task": "name",
    "start": "start",
    "start date": "start",
    "end": "end",
    "end date": "end",
    "finish": "end",
    "predecessors": "predecessors",
    "triggering task": "predecessors",
}

# "<id>[<TYPE>][+/-<lag>[d]]", e.g. "4", "4FS", "4ss+2", "A FF-1d".
# The type must follow a digit or a space, so an id such as "class" stays whole.
PREDECESSOR_PATTERN = re.compile(
    r"^(?P<id>.+?)\s*(?P<type>(?<=[\d\s])(?:FS|SS|FF|SF))?\s*(?:(?P<lag>[+-]\s*\d+)\s*(?:d|days?)?)?$",
    re.IGNORECASE,
)


def parse_predecessor_cell(cell) -> List[Dependency]:
    """
    Parses a '|'-separated predecessor cell into dependencies.

    Entries without a type are Finish-to-Start; entries without a lag have lag 0.
    """
    if cell is None:
        return []
    raw = str(cell).strip()
    if not raw or raw.lower() == "nan":
        return []

    dependencies = []
    for entry in raw.split("|"):
        entry = entry.strip()
        if not entry:
            continue
        match = PREDECESSOR_PATTERN.match(entry)
        if not match:
            raise TaskImportError(f"Cannot parse predecessor entry '{entry}'")

        pred_id = match.group("id").strip()
        # Excel stores numeric ids as floats
        if re.fullmatch(r"\d+\.0", pred_id):
            pred_id = pred_id[:-2]

        dep_type = (match.group("type") or "FS").upper()
        lag = int(match.group("lag").replace(" ", "")) if match.group("lag") else 0
        dependencies.append(Dependency(predecessor_id=pred_id, type=dep_type, lag=lag))
    return dependencies


def _to_date(value, field, row_label):
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if value is None or str(value).strip() == "":
        raise TaskImportError(f"{row_label}: missing {field} date")
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError:
        raise TaskImportError(f"{row_label}: invalid {field} date '{value}'")


def _normalize_id(value):
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def parse_task_rows(rows: Iterable[Mapping]) -> List[Task]:
    """Builds tasks from sheet rows keyed by header name."""
    tasks = []
    for index, row in enumerate(rows, start=1):
        fields = {}
        for key, value in row.items():
            field = COLUMN_ALIASES.get(str(key).strip().lower())
            if field:
                fields[field] = value

        row_label = f"Row {index}"
        name = str(fields.get("name") or "").strip()
        if not name:
            logger.debug(f"{row_label}: no task name, skipped")
            continue

        task_id = fields.get("id")
        task_id = _normalize_id(task_id) if task_id not in (None, "") else str(index)

        start_date = _to_date(fields.get("start"), "start", row_label)
        end_date = _to_date(fields.get("end"), "end", row_label)
        try:
            predecessors = parse_predecessor_cell(fields.get("predecessors"))
        except TaskImportError as e:
            raise TaskImportError(f"{row_label}: {e}") from e

        try:
            tasks.append(Task(
                id=task_id,
                name=name,
                start_date=start_date,
                end_date=end_date,
                predecessors=predecessors,
            ))
        except ValidationError as e:
            raise TaskImportError(f"{row_label}: {e.errors()[0]['msg']}") from e

    return tasks


def load_tasks_from_excel(content: bytes) -> List[Task]:
    """Reads the first sheet of an .xlsx workbook; the header row is the first one naming a task and a start column."""
    try:
        wb = openpyxl.load_workbook(io.BytesIO(content), data_only=True)
    except Exception as e:
        raise TaskImportError(f"Cannot open workbook: {e}")
    sheet = wb.active

    headers: Dict[int, str] = {}
    rows = []
    for values in sheet.iter_rows(values_only=True):
        if not headers:
            labels = [str(v).strip().lower() if v is not None else "" for v in values]
            mapped = [COLUMN_ALIASES.get(label) for label in labels]
            if "name" in mapped and "start" in mapped:
                headers = {idx: labels[idx] for idx, field in enumerate(mapped) if field}
                logger.info(f"Headers found: {headers}")
            continue

        if all(v is None for v in values):
            continue
        rows.append({label: values[idx] for idx, label in headers.items() if idx < len(values)})

    if not headers:
        raise TaskImportError("No header row with task name and start columns found")

    return parse_task_rows(rows)


def load_tasks_from_csv(content: bytes) -> List[Task]:
    try:
        df = pd.read_csv(io.BytesIO(content), dtype=str, keep_default_na=False)
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
        raise TaskImportError(f"Cannot read CSV: {e}")

    df.columns = [str(c).strip() for c in df.columns]
    return parse_task_rows(df.to_dict(orient="records"))
