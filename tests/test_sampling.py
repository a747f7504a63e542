from __future__ import annotations

import pytest
import sqlalchemy as sa

from joinpath_mcp.schema_tools.exceptions import SamplingError
from joinpath_mcp.schema_tools.sampling import Sampler


def test_sample_rows(shop_engine: sa.Engine) -> None:
    rows = Sampler(shop_engine).sample("main", "customers")

    assert [row["name"] for row in rows] == ["Alice", "Bob"]
    assert rows[0]["email"] == "alice@example.com"


def test_nulls_become_none(shop_engine: sa.Engine) -> None:
    rows = Sampler(shop_engine).sample(None, "customers")

    assert rows[1]["email"] is None


@pytest.mark.parametrize(("limit", "expected"), [(1, 1), (2, 2), (5000, 3)])
def test_limit(shop_engine: sa.Engine, limit: int, expected: int) -> None:
    assert len(Sampler(shop_engine).sample("main", "order_items", limit)) == expected


def test_default_limit(shop_engine: sa.Engine) -> None:
    assert len(Sampler(shop_engine, default_limit=2).sample("main", "order_items")) == 2


def test_missing_table(shop_engine: sa.Engine) -> None:
    with pytest.raises(SamplingError, match="nowhere"):
        Sampler(shop_engine).sample("main", "nowhere")
