"""Shared fixtures: rendered-page markup builders and sample models."""

import pytest

from src.shutdowns.models import AddressQuery

HOUR_LABELS = [f"{h:02d}-{h + 1:02d}" for h in range(24)]

# 2025-11-26 00:00 and 2025-11-27 00:00 in Europe/Kyiv
TODAY_TS = "1764108000"
TOMORROW_TS = "1764194400"


def fact_table(classes: dict[str, str], rel: str | None = None, active: bool = False) -> str:
    """One div.discon-fact-table; ``classes`` maps "HH-HH" to a cell class."""
    head = "".join(f'<th scope="col"><div>{label}</div></th>' for label in HOUR_LABELS)
    body = "".join(
        f'<td class="{classes.get(label, "cell-non-scheduled")}"></td>'
        for label in HOUR_LABELS
    )
    rel_attr = f' rel="{rel}"' if rel else ""
    active_class = " active" if active else ""
    return (
        f'<div class="discon-fact-table{active_class}"{rel_attr}>'
        "<table>"
        f'<thead><tr><th colspan="2"><div class="head-time">Часові проміжки</div></th>{head}</tr></thead>'
        f'<tbody><tr><td colspan="2"><div>Сьогодні</div></td>{body}</tr></tbody>'
        "</table></div>"
    )


def date_tab(label: str, rel: str) -> str:
    return (
        f'<div class="date" rel="{rel}"><div>на дату</div>'
        f'<div><span rel="date">{label}</span></div></div>'
    )


def schedule_page(
    tables: str,
    dates: str = "",
    update: str | None = None,
    queue: str | None = None,
) -> str:
    """Full page with the address form and the #discon-fact block."""
    group = f'<div id="group-name"><span>{queue}</span></div>' if queue else ""
    update_span = f'<span class="update">{update}</span>' if update else ""
    return (
        "<html><body>"
        f'<form id="discon_form"><input id="city"><input id="street"><input id="house_num">{group}</form>'
        '<div id="discon-fact">'
        f'<div class="dates">{dates}</div>'
        f'<div class="discon-fact-tables">{tables}</div>'
        f"{update_span}"
        "</div></body></html>"
    )


@pytest.fixture
def address() -> AddressQuery:
    return AddressQuery(city="с. Софіївська Борщагівка", street="вул. Миру", building="12")


@pytest.fixture
def two_day_page() -> str:
    today = fact_table(
        {
            "05-06": "cell-second-half",
            "06-07": "cell-scheduled",
            "07-08": "cell-scheduled",
            "09-10": "cell-first-half",
            "18-19": "cell-scheduled-maybe",
            "23-24": "cell-scheduled",
        },
        rel=TODAY_TS,
        active=True,
    )
    tomorrow = fact_table(
        {"00-01": "cell-scheduled", "01-02": "cell-first-half"},
        rel=TOMORROW_TS,
    )
    return schedule_page(
        today + tomorrow,
        dates=date_tab("26.11.25", TODAY_TS) + date_tab("27.11.25", TOMORROW_TS),
        update="26.11.2025 10:15",
        queue="Черга 3.1",
    )
