#!filepath: simsum/cli.py
from collections import defaultdict
from typing import Dict, List, Optional

import pandas as pd
import typer
from rich import print
from rich.table import Table

from simsum import AppConfig, FormatMode, SummaryQuery, init_logging, load, load_interactive, save
from simsum.analytics import max_min
from simsum.analytics.misfit import ObservationPoint, ObservationVector, eval_misfit
from simsum.config.analytics_config import MisfitNorm, MissingPolicy, TimeMatch
from simsum.query import dump as dump_table
from simsum.utils.errors import SummaryError

app = typer.Typer(help="Simulation summary vector CLI")


def _pick(value, default):
    return default if value is None else value


def _open(cfg: AppConfig, case: str, recursive: Optional[bool], strict_units: Optional[bool]):
    try:
        return load(
            case,
            recursive=_pick(recursive, cfg.summary.recursive),
            strict_units=_pick(strict_units, cfg.summary.strict_units),
        )
    except SummaryError as exc:
        print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1)


@app.callback()
def main(ctx: typer.Context, config: Optional[str] = typer.Option(None, help="YAML config path")):
    """
    初始化配置与日志；命令行未给出的选项取配置文件中的值
    """
    cfg = AppConfig.load(config)
    init_logging(cfg.log)
    ctx.obj = cfg


@app.command()
def version():
    from simsum import __version__

    print(__version__)


@app.command()
def info(
    ctx: typer.Context,
    case: str,
    recursive: Optional[bool] = typer.Option(None, "--recursive/--no-recursive"),
    strict_units: Optional[bool] = typer.Option(None, "--strict-units/--lenient-units"),
):
    """
    header 概要：起始时间、井 / 组 / 区域、step 与 report 范围
    """
    summary = _open(ctx.obj, case, recursive, strict_units)
    query = SummaryQuery(summary)

    print(f"[bold]{summary.case}[/bold] ({summary.format_mode.value})")
    print(f"start     : {query.get_start_time()}")
    print(f"variables : {summary.catalog.size}")
    print(f"steps     : {query.get_size()}")
    if query.get_size():
        first, last = query.get_report_size()
        print(f"reports   : {first} .. {last}")
    print(f"wells     : {query.num_wells} {query.well_names()}")
    print(f"groups    : {query.num_groups} {query.group_names()}")
    print(f"regions   : {query.num_regions}")


@app.command()
def dump(
    ctx: typer.Context,
    case: str,
    keys: List[str],
    first: int = 0,
    last: Optional[int] = None,
    recursive: Optional[bool] = typer.Option(None, "--recursive/--no-recursive"),
    strict_units: Optional[bool] = typer.Option(None, "--strict-units/--lenient-units"),
):
    """
    选定变量的列对齐文本表，例如：dump CASE WOPR:OP1 FOPT
    """
    summary = _open(ctx.obj, case, recursive, strict_units)
    try:
        dump_table(SummaryQuery(summary), keys, first, last)
    except SummaryError as exc:
        print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1)


@app.command()
def maxmin(
    ctx: typer.Context,
    case: str,
    keys: List[str],
    first: int = 0,
    last: Optional[int] = None,
    include_zero: Optional[bool] = typer.Option(None, "--include-zero/--exclude-zero"),
    workers: Optional[int] = typer.Option(None, min=1),
    recursive: Optional[bool] = typer.Option(None, "--recursive/--no-recursive"),
):
    """
    变量在 step 区间内的最大 / 最小值
    """
    cfg: AppConfig = ctx.obj
    summary = _open(cfg, case, recursive, None)
    query = SummaryQuery(summary)
    last = query.get_size() - 1 if last is None else last

    try:
        result = max_min(
            query,
            keys,
            (first, last),
            include_zero=_pick(include_zero, cfg.analytics.include_zero),
            workers=_pick(workers, cfg.analytics.workers),
        )
    except SummaryError as exc:
        print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1)

    table = Table("key", "max", "min")
    for key, mm in result.items():
        if mm.has_data:
            table.add_row(key, f"{mm.max:.6g}", f"{mm.min:.6g}")
        else:
            table.add_row(key, "no data", "no data")
    print(table)


def _read_observations(path: str) -> Dict[str, Dict[str, ObservationVector]]:
    """
    观测 CSV：well, keyword, value[, weight] + 时间列 step / days / time 之一
    """
    df = pd.read_csv(path)
    locator = next((c for c in ("step", "days", "time") if c in df.columns), None)
    if locator is None or not {"well", "keyword", "value"} <= set(df.columns):
        raise typer.BadParameter("observations need well, keyword, value and one of step/days/time")

    if locator == "time":
        df["time"] = pd.to_datetime(df["time"])
    if "weight" not in df.columns:
        df["weight"] = 1.0

    out: Dict[str, Dict[str, ObservationVector]] = defaultdict(dict)
    for (well, kw), rows in df.groupby(["well", "keyword"], sort=False):
        points = []
        for row in rows.itertuples(index=False):
            at = getattr(row, locator)
            if locator == "step":
                at = int(at)
            elif locator == "days":
                at = float(at)
            else:
                at = at.to_pydatetime()
            points.append(ObservationPoint(float(row.value), float(row.weight), **{locator: at}))
        out[str(well).strip()][str(kw).strip()] = ObservationVector(str(kw).strip(), points)
    return out


@app.command()
def misfit(
    ctx: typer.Context,
    case: str,
    observations: str,
    norm: Optional[MisfitNorm] = typer.Option(None, case_sensitive=False),
    time_match: Optional[TimeMatch] = typer.Option(None, case_sensitive=False),
    missing: Optional[MissingPolicy] = typer.Option(None, case_sensitive=False),
    recursive: Optional[bool] = typer.Option(None, "--recursive/--no-recursive"),
):
    """
    按观测 CSV 计算逐井 misfit 与总和
    """
    cfg: AppConfig = ctx.obj
    summary = _open(cfg, case, recursive, None)

    base = cfg.analytics.misfit
    config = base.model_copy(
        update={
            "norm": _pick(norm, base.norm),
            "time_match": _pick(time_match, base.time_match),
            "missing": _pick(missing, base.missing),
        }
    )

    obs = _read_observations(observations)
    wells = list(obs)
    keywords = list(dict.fromkeys(kw for per_kw in obs.values() for kw in per_kw))

    try:
        report = eval_misfit(
            SummaryQuery(summary),
            wells,
            keywords,
            {w: {kw: obs[w].get(kw, ObservationVector(kw)) for kw in keywords} for w in wells},
            config=config,
        )
    except SummaryError as exc:
        print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1)

    table = Table("well", "misfit", "used", "skipped")
    for well, m in report.per_well.items():
        table.add_row(well, f"{m.total:.6g}", str(m.used), str(m.skipped))
    table.add_row("[bold]total[/bold]", f"{report.total:.6g}", "", "")
    print(table)
    if report.partial:
        print("[yellow]partial coverage: some observations had no simulated value[/yellow]")


@app.command()
def convert(
    ctx: typer.Context,
    case: str,
    dest: str,
    format: Optional[FormatMode] = typer.Option(None, case_sensitive=False),
    digits: Optional[int] = typer.Option(None, min=1, max=8),
):
    """
    binary <-> formatted 转换（缺省格式取 summary.default_format）
    """
    cfg: AppConfig = ctx.obj
    summary = _open(cfg, case, True, None)
    written = save(
        summary,
        dest,
        _pick(format, cfg.summary.default_format),
        digits=_pick(digits, cfg.summary.batch_digits),
    )
    print(f"[green]wrote {len(written)} files → {dest}[/green]")


@app.command()
def pick(
    ctx: typer.Context,
    directory: str,
    recursive: Optional[bool] = typer.Option(None, "--recursive/--no-recursive"),
    strict_units: Optional[bool] = typer.Option(None, "--strict-units/--lenient-units"),
):
    """
    目录中有多个 case 时交互选择
    """
    cfg: AppConfig = ctx.obj

    def _prompt(candidates: List[str]) -> str:
        for i, name in enumerate(candidates, 1):
            print(f"  {i}. {name}")
        choice = typer.prompt("select case")
        if choice.isdigit() and 1 <= int(choice) <= len(candidates):
            return candidates[int(choice) - 1]
        return choice

    try:
        summary = load_interactive(
            directory,
            prompt=_prompt,
            recursive=_pick(recursive, cfg.summary.recursive),
            strict_units=_pick(strict_units, cfg.summary.strict_units),
        )
    except SummaryError as exc:
        print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1)

    print(f"[green]loaded {summary!r}[/green]")


if __name__ == "__main__":
    app()

# python -m simsum.cli info data/NORNE
