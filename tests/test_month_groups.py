from datetime import date

import pytest

from app.analyzer.month_groups import (
    create_virtual_dataset,
    dataset_month_year,
    filter_rows_by_account,
    group_datasets_by_month,
    group_date_range,
    month_date_range,
    most_recent_dataset,
    most_recent_group,
    sort_datasets_by_month,
    unique_accounts,
)


@pytest.fixture()
def google_files(make_row, make_dataset):
    return [
        make_dataset(
            "suzuki-google-nov.csv",
            "google",
            [make_row("google", date="2025-11-10", account_name="Suzuki", spend=20)],
            date_range={"start": "2025-11-01", "end": "2025-11-30"},
        ),
        make_dataset(
            "kia-google-out.csv",
            "google",
            [make_row("google", date="2025-10-06", account_name="Kia", spend=5)],
        ),
        make_dataset(
            "kia-google-nov.csv",
            "google",
            [
                make_row("google", date="2025-11-03", account_name="Kia", spend=10),
                make_row("google", date="2025-11-24", account_name="Kia", spend=30),
            ],
        ),
        make_dataset("report-2024.csv", "google", [make_row("google", date="2024-01-01", spend=1)]),
    ]


def test_groups_by_month_newest_first(google_files, today):
    groups = group_datasets_by_month(google_files, today)

    assert [g.id for g in groups] == ["nov-2025", "out-2025"]
    nov = groups[0]
    assert nov.label == "Novembro 2025"
    assert nov.month == "nov" and nov.year == 2025
    assert nov.accounts == ["Kia", "Suzuki"]
    assert [d.meta.file_name for d in nov.datasets] == ["suzuki-google-nov.csv", "kia-google-nov.csv"]
    assert [r.spend for r in nov.all_rows] == [20, 10, 30]
    assert most_recent_group(groups) is nov


def test_unclassifiable_datasets_are_excluded(google_files, today):
    groups = group_datasets_by_month(google_files, today)
    assert all(d.meta.file_name != "report-2024.csv" for g in groups for d in g.datasets)


def test_year_boundary_ordering(make_dataset):
    files = [make_dataset("kia-google-dez.csv", "google"), make_dataset("kia-google-jan.csv", "google")]

    groups = group_datasets_by_month(files, date(2026, 1, 15))

    assert [g.id for g in groups] == ["jan-2026", "dez-2025"]


def test_no_groups(today):
    assert group_datasets_by_month([], today) == []
    assert most_recent_group([]) is None


def test_filter_rows_by_account_is_case_insensitive(google_files, today):
    nov = group_datasets_by_month(google_files, today)[0]

    assert [r.spend for r in filter_rows_by_account(nov, "kia")] == [10, 30]
    assert len(filter_rows_by_account(nov, None)) == 3
    assert filter_rows_by_account(nov, "Haojue") == []


def test_virtual_dataset(google_files, today):
    nov = group_datasets_by_month(google_files, today)[0]

    whole = create_virtual_dataset(nov)
    kia = create_virtual_dataset(nov, "Kia")

    assert whole.meta.id == "nov-2025"
    assert whole.meta.label == "Novembro 2025"
    assert len(whole.rows) == 3
    assert kia.meta.id == "nov-2025-kia"
    assert kia.meta.label == "Novembro 2025 (Kia)"
    assert kia.meta.platform.value == "google"
    assert kia.meta.file_name == "suzuki-google-nov.csv"
    assert kia.meta.date_range.start == "2025-11-01"
    assert [r.account_name for r in kia.rows] == ["Kia", "Kia"]


def test_group_date_range_covers_last_week(google_files, today):
    nov = group_datasets_by_month(google_files, today)[0]

    span = group_date_range(nov)

    assert span.start == "2025-11-03"
    assert span.end == "2025-11-30"


def test_group_date_range_without_dates(make_row, make_dataset, today):
    files = [make_dataset("kia-google-nov.csv", "google", [make_row("google", date="--", spend=1)])]
    assert group_date_range(group_datasets_by_month(files, today)[0]) is None


def test_unique_accounts_skip_unknown(google_files):
    assert unique_accounts(google_files) == ["Kia", "Suzuki"]


def test_sort_datasets_by_month(google_files, today):
    ordered = sort_datasets_by_month(google_files, today)
    assert [d.meta.file_name for d in ordered] == [
        "suzuki-google-nov.csv",
        "kia-google-nov.csv",
        "kia-google-out.csv",
        "report-2024.csv",
    ]


def test_most_recent_dataset_prefers_current_then_previous_month(make_dataset, today):
    nov = make_dataset("relatorio-meta-nov.csv", "meta")
    out = make_dataset("relatorio-meta-out.csv", "meta")
    dez = make_dataset("relatorio-meta-dez.csv", "meta")

    assert most_recent_dataset([out, nov], today) is nov
    assert most_recent_dataset([nov, dez, out], today) is dez
    assert most_recent_dataset([], today) is None


def test_most_recent_dataset_falls_back_to_newest(make_dataset, today):
    jan = make_dataset("relatorio-meta-jan.csv", "meta")
    mar = make_dataset("relatorio-meta-mar.csv", "meta")
    assert most_recent_dataset([jan, mar], today) is mar


def test_dataset_month_year(make_dataset, today):
    assert dataset_month_year(make_dataset("relatorio-meta-ago.csv", "meta"), today) == (8, 2025)
    assert dataset_month_year(make_dataset("relatorio.csv", "meta"), today) is None


def test_month_date_range_handles_leap_years():
    feb = month_date_range(2024, 2)
    assert (feb.start, feb.end) == ("2024-02-01", "2024-02-29")
    assert month_date_range(2025, 12).end == "2025-12-31"
