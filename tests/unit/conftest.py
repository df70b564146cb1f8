"""Shared test fixtures."""

from typing import Any

import pytest

from tests.unit.fakes import (
    BULLET_LISTS,
    FAQ_MARKDOWN,
    FakeDocsApi,
    FakeSink,
    doc,
    para,
    run,
    table,
)


@pytest.fixture
def sample_document() -> dict[str, Any]:
    """A Google Docs document with headings, lists, an FAQ section and a table."""
    return doc(
        para("Shipping guide", style="HEADING_1"),
        para("Everything about ", run("getting", bold=True), " your order."),
        para("Main points", style="HEADING_2"),
        para("Fast", bullet={"listId": "list-bullets"}),
        para("Tracked", bullet={"listId": "list-bullets", "nestingLevel": 1}),
        para("##FAQ"),
        para("Frequently Asked Questions", style="HEADING_2"),
        para("Do you ship abroad? Yes, to most countries."),
        para("How long does shipping take?", style="HEADING_3"),
        para("Usually three to five days."),
        para("Returns", style="HEADING_1"),
        table([["Zone", "Days"], ["EU", "3"], ["World"]]),
        title="Shipping",
        lists=BULLET_LISTS,
    )


@pytest.fixture
def fake_api(sample_document: dict[str, Any]) -> FakeDocsApi:
    api = FakeDocsApi()
    api.add_document("doc-1", sample_document)
    return api


@pytest.fixture
def fake_sink() -> FakeSink:
    return FakeSink()


@pytest.fixture
def faq_markdown() -> str:
    return FAQ_MARKDOWN
