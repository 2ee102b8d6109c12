from survey_pipeline.models import MeanTable
from survey_pipeline.processors.parsing import areas
from survey_pipeline.processors.parsing.tables_7point import (
    assign_columns,
    find_column_header,
    is_column_header_line,
    parse_mean_rows,
)

REPORT = "\n".join(
    [
        "Resultat per fråga",
        "                        2020      2021      2022      SDN      Göteborg",
        "                Otillräcklig                          Utmärkt",
        "TRYGGHET OCH GEMENSKAP",
        "Mitt barn känner sig tryggt på        10%  20%  70%     5,8    5,9    6,0    5,5    5,4    5,2",
        "förskolan",
        "Vet ej",
        "Jag får information om mitt barns",
        "utveckling       5%  15%  80%     6,1    6,2    6,3    5,9    5,8    5,7",
        "Rapporten gäller förskolan Solen",
        "Utanför datasektionen står det     5,1    5,2    5,3",
    ]
)


def test_find_column_header_without_region():
    header = find_column_header(REPORT.split("\n"))

    assert header.years == [2020, 2021, 2022]
    assert header.has_region is False


def test_find_column_header_with_region_column():
    lines = ["Resultat per fråga", "     2016     2017     SDN     Göteborg     GR"]
    header = find_column_header(lines)

    assert header.years == [2016, 2017]
    assert header.has_region is True


def test_find_column_header_requires_results_marker():
    assert find_column_header(["2020   2021   Göteborg"]) is None


def test_assign_columns_without_region():
    columns = assign_columns([5.8, 5.9, 6.0, 5.5, 5.4, 5.2], [2020, 2021, 2022], False)

    assert columns["historical_means"] == {"2020": 5.8, "2021": 5.9, "2022": 6.0}
    assert columns["mean_facility"] == 5.5
    assert columns["mean_district"] == 5.4
    assert columns["mean_city"] == 5.2
    assert "mean_region" not in columns


def test_assign_columns_with_region():
    columns = assign_columns([5.8, 5.9, 5.5, 5.4, 5.3, 5.2], [2016, 2017], True)

    assert columns["mean_facility"] == 5.8
    assert columns["historical_means"] == {"2016": 5.8, "2017": 5.9}
    assert columns["mean_region"] == 5.2
    assert columns["mean_city"] == 5.3
    assert columns["mean_district"] == 5.4


def test_is_column_header_line():
    assert is_column_header_line("SDN Centrum      Göteborg")
    assert not is_column_header_line("Jag får information om mitt barns")


def test_parse_mean_rows():
    table = parse_mean_rows(REPORT)

    assert table.historical_years == [2020, 2021, 2022]
    assert [row.question_text for row in table.rows] == [
        "mitt barn känner sig tryggt på förskolan",
        "jag får information om mitt barns utveckling",
    ]
    first = table.rows[0]
    assert first.question_area == areas.SAFETY
    assert first.mean_facility == 5.5
    assert first.mean_city == 5.2
    assert first.mean_region is None
    assert table.rows[1].historical_means == {"2020": 6.1, "2021": 6.2, "2022": 6.3}


def test_parse_mean_rows_without_header_is_empty():
    assert parse_mean_rows("Otillräcklig   Utmärkt\nText") == MeanTable()
