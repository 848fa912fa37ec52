"""Two-axis pivot tables with row, column and grand totals."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import NamedTuple

ZERO = Decimal("0.00")
Q2 = Decimal("0.01")


class PivotMetric(str, Enum):
    HOURS = "hours"
    AMOUNT = "amount"


class PivotSort(str, Enum):
    NAME = "name"
    TOTAL_DESC = "total_desc"
    TOTAL_ASC = "total_asc"


class CellKey(NamedTuple):
    row_id: int
    column_id: int


@dataclass(frozen=True, slots=True)
class PivotFact:
    """One contributing record, already projected onto the two axes."""

    row_id: int
    row_label: str
    column_id: int
    column_label: str
    values: dict[PivotMetric, Decimal]


@dataclass(frozen=True, slots=True)
class AxisMember:
    member_id: int
    label: str


@dataclass(frozen=True, slots=True)
class PivotInclude:
    row_totals: bool = True
    column_totals: bool = True
    grand_total: bool = True


@dataclass(slots=True)
class PivotTable:
    metrics: tuple[PivotMetric, ...]
    rows: list[AxisMember] = field(default_factory=list)
    columns: list[AxisMember] = field(default_factory=list)
    cells: dict[CellKey, dict[PivotMetric, Decimal]] = field(default_factory=dict)
    row_totals: dict[int, dict[PivotMetric, Decimal]] = field(default_factory=dict)
    column_totals: dict[int, dict[PivotMetric, Decimal]] = field(default_factory=dict)
    grand_total: dict[PivotMetric, Decimal] = field(default_factory=dict)

    def cell(self, row_id: int, column_id: int) -> dict[PivotMetric, Decimal] | None:
        """Metric values for a cell, ``None`` when nothing contributed to it."""

        return self.cells.get(CellKey(row_id, column_id))


def _accumulate(target: dict[PivotMetric, Decimal], values: dict[PivotMetric, Decimal], metrics) -> None:
    for metric in metrics:
        target[metric] = target.get(metric, ZERO) + values.get(metric, ZERO)


def _sorted_members(
    labels: dict[int, str],
    totals: dict[int, dict[PivotMetric, Decimal]],
    sort: PivotSort,
    primary: PivotMetric,
) -> list[AxisMember]:
    def by_name(member_id: int) -> tuple[str, int]:
        return (labels[member_id].casefold(), member_id)

    member_ids = sorted(labels, key=by_name)
    if sort is PivotSort.TOTAL_DESC:
        member_ids.sort(key=lambda member_id: totals[member_id][primary], reverse=True)
    elif sort is PivotSort.TOTAL_ASC:
        member_ids.sort(key=lambda member_id: totals[member_id][primary])
    return [AxisMember(member_id=member_id, label=labels[member_id]) for member_id in member_ids]


def build_pivot(
    facts: Iterable[PivotFact],
    *,
    metrics: tuple[PivotMetric, ...],
    row_sort: PivotSort = PivotSort.NAME,
    column_sort: PivotSort = PivotSort.NAME,
) -> PivotTable:
    """Aggregate ``facts`` into a sparse matrix.

    Every total is accumulated from the raw fact values, never from rounded
    cells, so ``sum(cells) == sum(row totals) == sum(column totals) == grand``
    for each metric.
    """

    if not metrics:
        raise ValueError("At least one metric is required.")

    table = PivotTable(metrics=metrics)
    row_labels: dict[int, str] = {}
    column_labels: dict[int, str] = {}
    grand: dict[PivotMetric, Decimal] = {metric: ZERO for metric in metrics}

    for fact in facts:
        row_labels.setdefault(fact.row_id, fact.row_label)
        column_labels.setdefault(fact.column_id, fact.column_label)
        _accumulate(table.cells.setdefault(CellKey(fact.row_id, fact.column_id), {}), fact.values, metrics)
        _accumulate(table.row_totals.setdefault(fact.row_id, {}), fact.values, metrics)
        _accumulate(table.column_totals.setdefault(fact.column_id, {}), fact.values, metrics)
        _accumulate(grand, fact.values, metrics)

    primary = metrics[0]
    table.rows = _sorted_members(row_labels, table.row_totals, row_sort, primary)
    table.columns = _sorted_members(column_labels, table.column_totals, column_sort, primary)
    table.grand_total = grand
    return table


def render_metric(value: Decimal) -> float:
    return float(value.quantize(Q2, rounding=ROUND_HALF_UP))


def _render_values(values: dict[PivotMetric, Decimal], metrics: tuple[PivotMetric, ...]) -> dict[str, float]:
    return {metric.value: render_metric(values.get(metric, ZERO)) for metric in metrics}


def pivot_payload(
    table: PivotTable,
    *,
    include: PivotInclude,
    row_dimension: str,
    column_dimension: str,
) -> dict[str, object]:
    """JSON shape of a pivot: axes, sparse cells and requested totals."""

    cells: list[dict[str, object]] = []
    for row in table.rows:
        for column in table.columns:
            values = table.cell(row.member_id, column.member_id)
            if values is None:
                continue
            cells.append(
                {
                    "row_id": str(row.member_id),
                    "column_id": str(column.member_id),
                    **_render_values(values, table.metrics),
                }
            )

    return {
        "rows": [
            {"row_id": str(row.member_id), f"{row_dimension}_id": row.member_id, "label": row.label}
            for row in table.rows
        ],
        "columns": [
            {"column_id": str(column.member_id), f"{column_dimension}_id": column.member_id, "label": column.label}
            for column in table.columns
        ],
        "cells": cells,
        "totals": {
            "rows": [
                {"row_id": str(row.member_id), **_render_values(table.row_totals[row.member_id], table.metrics)}
                for row in table.rows
            ]
            if include.row_totals
            else [],
            "columns": [
                {
                    "column_id": str(column.member_id),
                    **_render_values(table.column_totals[column.member_id], table.metrics),
                }
                for column in table.columns
            ]
            if include.column_totals
            else [],
            "grand": _render_values(table.grand_total, table.metrics) if include.grand_total else None,
        },
    }
