# simsum/codec/header_codec.py
from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import pyarrow as pa
import pyarrow.parquet as pq

from simsum.config.summary_config import FormatMode
from simsum.core.summary_set import SummarySet
from simsum.core.types import VarCategory, VariableKey
from simsum.utils.datetime_utils import DateTimeUtils
from simsum.utils.errors import CorruptDataError, SummaryIOError
from simsum.utils.filesystem import FileSystem
from simsum.utils.stringlist import Ownership

HEADER_VERSION = 1

_META_PREFIX = "simsum."

HEADER_SCHEMA = pa.schema(
    [
        pa.field("category", pa.string(), nullable=False),
        pa.field("keyword", pa.string(), nullable=False),
        pa.field("entity", pa.string()),
        pa.field("completion", pa.int64()),
        pa.field("unit", pa.string()),
    ]
)


@dataclass
class HeaderData:
    """
    header 的逻辑内容（与存储格式无关）
    """

    case: str
    start_time: Optional[datetime]
    format_mode: FormatMode
    wells: List[str] = field(default_factory=list)
    groups: List[str] = field(default_factory=list)
    keys: List[Tuple[VariableKey, str]] = field(default_factory=list)

    # --------------------------------------------------
    @classmethod
    def from_summary(cls, summary: SummarySet, format_mode: FormatMode) -> "HeaderData":
        catalog = summary.catalog
        return cls(
            case=summary.case,
            start_time=summary.start_time,
            format_mode=FormatMode(format_mode),
            wells=catalog.well_names(),
            groups=catalog.group_names(),
            keys=list(zip(catalog.keys(), catalog.units())),
        )

    def build_summary(self) -> SummarySet:
        """
        header → 空 SummarySet（名称以 COPY 方式从文件取得）
        """
        summary = SummarySet(
            case=self.case,
            start_time=self.start_time,
            format_mode=self.format_mode,
        )
        summary.catalog.declare_wells(self.wells, Ownership.COPY)
        summary.catalog.declare_groups(self.groups, Ownership.COPY)
        for key, unit in self.keys:
            try:
                summary.register(key, unit)
            except ValueError as exc:
                raise CorruptDataError(f"[Header] {self.case}: {exc}") from exc
        return summary

    def key_map(self) -> Dict[str, VariableKey]:
        out: Dict[str, VariableKey] = {}
        for key, _ in self.keys:
            text = key.gen_key()
            if text in out:
                raise CorruptDataError(f"[Header] duplicate variable key: {text}")
            out[text] = key
        return out


# ======================================================================
# write
# ======================================================================
def write_header(header: HeaderData, path: Path) -> None:
    header.key_map()

    if header.format_mode is FormatMode.FORMATTED:
        data = _encode_formatted(header)
    else:
        data = _encode_binary(header)

    try:
        FileSystem.safe_write(path, data)
    except OSError as exc:
        raise SummaryIOError(f"[Header] cannot write {path}: {exc}") from exc


def _entity_text(key: VariableKey) -> Optional[str]:
    return None if key.entity is None else str(key.entity)


def _encode_binary(header: HeaderData) -> bytes:
    keys = [k for k, _ in header.keys]
    table = pa.Table.from_pydict(
        {
            "category": [k.category.value for k in keys],
            "keyword": [k.keyword for k in keys],
            "entity": [_entity_text(k) for k in keys],
            "completion": [k.completion for k in keys],
            "unit": [u for _, u in header.keys],
        },
        schema=HEADER_SCHEMA,
    )
    table = table.replace_schema_metadata(
        {
            _META_PREFIX + "version": str(HEADER_VERSION),
            _META_PREFIX + "case": header.case,
            _META_PREFIX + "start_time": _time_text(header.start_time),
            _META_PREFIX + "wells": json.dumps(header.wells),
            _META_PREFIX + "groups": json.dumps(header.groups),
        }
    )

    sink = pa.BufferOutputStream()
    pq.write_table(table, sink)
    return sink.getvalue().to_pybytes()


def _encode_formatted(header: HeaderData) -> bytes:
    payload = {
        "version": HEADER_VERSION,
        "case": header.case,
        "format": FormatMode.FORMATTED.value,
        "start_time": _time_text(header.start_time),
        "wells": header.wells,
        "groups": header.groups,
        "keys": [
            {
                "category": key.category.value,
                "keyword": key.keyword,
                "entity": key.entity,
                "completion": key.completion,
                "unit": unit,
            }
            for key, unit in header.keys
        ],
    }
    return json.dumps(payload, indent=2, ensure_ascii=False).encode("utf-8")


def _time_text(ts: Optional[datetime]) -> str:
    return "" if ts is None else DateTimeUtils.isoformat(ts)


# ======================================================================
# read
# ======================================================================
def read_header(path: Path, format_mode: FormatMode) -> HeaderData:
    path = Path(path)
    if not path.exists():
        raise SummaryIOError(f"[Header] not found: {path}")

    try:
        if FormatMode(format_mode) is FormatMode.FORMATTED:
            header = _decode_formatted(path)
        else:
            header = _decode_binary(path)
    except OSError as exc:
        raise SummaryIOError(f"[Header] cannot read {path}: {exc}") from exc

    header.key_map()
    return header


def _decode_binary(path: Path) -> HeaderData:
    try:
        table = pq.read_table(path)
    except (pa.ArrowInvalid, pa.ArrowTypeError) as exc:
        raise CorruptDataError(f"[Header] malformed binary header {path}: {exc}") from exc

    missing = set(HEADER_SCHEMA.names) - set(table.column_names)
    if missing:
        raise CorruptDataError(f"[Header] {path.name} missing columns: {sorted(missing)}")

    try:
        meta = {
            k.decode("utf-8"): v.decode("utf-8")
            for k, v in (table.schema.metadata or {}).items()
        }
    except UnicodeDecodeError as exc:
        raise CorruptDataError(f"[Header] {path.name} metadata is not UTF-8: {exc}") from exc
    if _META_PREFIX + "version" not in meta:
        raise CorruptDataError(f"[Header] {path.name} carries no header metadata")

    rows = table.select(HEADER_SCHEMA.names).to_pylist()
    try:
        wells = json.loads(meta.get(_META_PREFIX + "wells", "[]"))
        groups = json.loads(meta.get(_META_PREFIX + "groups", "[]"))
    except json.JSONDecodeError as exc:
        raise CorruptDataError(f"[Header] {path.name} bad entity lists: {exc}") from exc

    return HeaderData(
        case=meta.get(_META_PREFIX + "case") or path.stem,
        start_time=_parse_time(meta.get(_META_PREFIX + "start_time", ""), path),
        format_mode=FormatMode.BINARY,
        wells=_names(wells, path),
        groups=_names(groups, path),
        keys=[_row_key(row, path) for row in rows],
    )


def _decode_formatted(path: Path) -> HeaderData:
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise CorruptDataError(f"[Header] malformed formatted header {path}: {exc}") from exc

    if not isinstance(payload, dict) or "keys" not in payload:
        raise CorruptDataError(f"[Header] {path.name} missing 'keys'")
    if not isinstance(payload["keys"], list):
        raise CorruptDataError(f"[Header] {path.name} 'keys' must be a list")

    return HeaderData(
        case=payload.get("case") or path.stem,
        start_time=_parse_time(payload.get("start_time") or "", path),
        format_mode=FormatMode.FORMATTED,
        wells=_names(payload.get("wells", []), path),
        groups=_names(payload.get("groups", []), path),
        keys=[_row_key(row, path) for row in payload["keys"]],
    )


def _names(value, path: Path) -> List[str]:
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise CorruptDataError(f"[Header] {path.name} entity list must be a list of strings")
    return value


def _parse_time(text: str, path: Path) -> Optional[datetime]:
    if not text:
        return None
    try:
        return DateTimeUtils.parse(text)
    except ValueError as exc:
        raise CorruptDataError(f"[Header] {path.name} bad start_time {text!r}") from exc


def _row_key(row, path: Path) -> Tuple[VariableKey, str]:
    if not isinstance(row, dict):
        raise CorruptDataError(f"[Header] {path.name} key record must be a mapping: {row!r}")
    try:
        key = VariableKey(
            VarCategory(row["category"]),
            row["keyword"],
            row.get("entity"),
            row.get("completion"),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise CorruptDataError(f"[Header] {path.name} bad key record {row!r}: {exc}") from exc
    return key, row.get("unit") or ""
