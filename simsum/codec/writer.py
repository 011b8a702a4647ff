# simsum/codec/writer.py
from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Union

from simsum import logs
from simsum.codec.batch_codec import write_batch
from simsum.codec.header_codec import HeaderData, write_header
from simsum.codec.naming import SummaryFileName, batch_path, header_path, iter_batches
from simsum.config.summary_config import FormatMode
from simsum.core.summary_set import SummarySet
from simsum.utils.errors import SummaryIOError


@logs.catch(msg="summary save failed")
def save(
    summary: SummarySet,
    destination: Union[str, Path],
    format_mode: Optional[FormatMode] = None,
    digits: int = 4,
) -> List[Path]:
    """
    写出 header + 数据（每个 report step 一个批次文件）

    destination: case 基名（dir/CASE）或 header 文件名
    format_mode: 缺省沿用 summary.format_mode

    旧的、编号更大的批次文件会被删除，保证 recursive 装载结果与本次写出一致。
    返回写出的文件列表（header 在前）。
    """
    mode = FormatMode(format_mode or summary.format_mode)

    base = Path(destination)
    name = SummaryFileName.parse(base)
    if name is not None:
        if not name.is_header:
            raise SummaryIOError(f"[Writer] destination must be a case or header name: {base}")
        base = name.base

    written: List[Path] = []

    hdr = header_path(base, mode)
    write_header(HeaderData.from_summary(summary, mode), hdr)
    written.append(hdr)

    catalog = summary.catalog
    index = summary.time_index
    keys = catalog.keys()
    units = catalog.units()

    batch_no = 0
    if summary.step_count():
        days = index.days()
        reports = index.reports()
        ministeps = index.ministeps()

        for report in index.report_steps():
            first, last = index.report_range(report)
            batch_no += 1

            columns = [
                (key.gen_key(), unit, summary.store.column(slot, first, last))
                for slot, (key, unit) in enumerate(zip(keys, units))
            ]
            path = batch_path(base, mode, batch_no, digits)
            write_batch(
                path,
                mode,
                ministeps[first: last + 1],
                reports[first: last + 1],
                days[first: last + 1],
                columns,
            )
            written.append(path)

    for stale in list(iter_batches(base, mode, start=batch_no + 1)):
        stale.unlink()
        logs.debug(f"[Writer] removed stale batch {stale.name}")

    logs.info(
        f"[Writer] saved {summary.case} → {hdr} batches={batch_no} "
        f"steps={summary.step_count()} format={mode.value}"
    )
    return written
