from survey_pipeline.models import TextItem
from survey_pipeline.processors.parsing import areas
from survey_pipeline.processors.parsing.charts_demographics import parse_demographics
from survey_pipeline.processors.parsing.charts_gender import (
    find_gender_chart_pages,
    parse_gender_splits,
    parse_gender_splits_from_items,
    parse_gender_splits_from_layout,
)
from survey_pipeline.processors.parsing.charts_rankings import (
    parse_important_questions,
    parse_unit_means,
)

GENDER_TEXT = "\n".join(
    [
        "Könsuppdelad andel positiva",
        "                        Total      Flicka      Pojke",
        "Jag känner mig trygg när          90%",
        "mitt barn är på förskolan",
        "                                  92%",
        "                                  88%",
        "Mitt barn trivs på förskolan      85%",
        "                                  80%",
        "                                  90%",
        "Frågeområde per enhet",
        "Efter sektionen med text          10%",
    ]
)


class TestGenderSplits:
    def test_layout_triplets(self):
        rows = parse_gender_splits_from_layout(GENDER_TEXT)

        assert [row.question_text for row in rows] == [
            "jag känner mig trygg när mitt barn är på förskolan",
            "mitt barn trivs på förskolan",
        ]
        assert (rows[0].pct_total, rows[0].pct_female, rows[0].pct_male) == (90, 92, 88)
        assert (rows[1].pct_total, rows[1].pct_female, rows[1].pct_male) == (85, 80, 90)

    def test_item_fallback_groups_rows(self):
        items = [
            TextItem(text="Jag känner mig trygg", x=10, y=100, page=2),
            TextItem(text="90%", x=300, y=100, page=2),
            TextItem(text="92%", x=350, y=100.5, page=2),
            TextItem(text="88%", x=400, y=100, page=2),
            TextItem(text="Rubrik utan procent", x=10, y=200, page=2),
        ]
        rows = parse_gender_splits_from_items(items, 1, 2)

        assert len(rows) == 1
        assert rows[0].question_text == "jag känner mig trygg"
        assert (rows[0].pct_total, rows[0].pct_female, rows[0].pct_male) == (90, 92, 88)

    def test_items_outside_page_range_are_ignored(self):
        items = [
            TextItem(text="Jag känner mig trygg", x=10, y=100, page=5),
            TextItem(text="90%", x=300, y=100, page=5),
            TextItem(text="92%", x=350, y=100, page=5),
        ]
        assert parse_gender_splits_from_items(items, 1, 2) == []

    def test_layout_result_wins_over_items(self):
        items = [
            TextItem(text="Något helt annat här", x=10, y=100),
            TextItem(text="10%", x=300, y=100),
            TextItem(text="20%", x=350, y=100),
        ]
        rows = parse_gender_splits(GENDER_TEXT, items)
        assert len(rows) == 2

    def test_items_used_on_gender_chart_pages(self):
        items = [
            TextItem(text="3. Förskolan har bra lokaler", x=10, y=100, page=1),
            TextItem(text="10%", x=300, y=100, page=1),
            TextItem(text="30%", x=350, y=100, page=1),
            TextItem(text="Könsuppdelad", x=10, y=50, page=2),
            TextItem(text="andel positiva", x=80, y=50, page=2),
            TextItem(text="Mitt barn trivs bra", x=10, y=100, page=2),
            TextItem(text="70%", x=300, y=100, page=2),
            TextItem(text="75%", x=350, y=100, page=2),
            TextItem(text="Frågeområde per enhet", x=10, y=50, page=3),
            TextItem(text="Avdelning Solen här", x=10, y=100, page=4),
            TextItem(text="40%", x=300, y=100, page=4),
            TextItem(text="45%", x=350, y=100, page=4),
        ]
        assert find_gender_chart_pages(items) == (2, 3)

        rows = parse_gender_splits("Ingen diagramtext", items)

        assert [row.question_text for row in rows] == ["mitt barn trivs bra"]
        assert rows[0].pct_male is None

    def test_no_item_fallback_without_gender_chart(self):
        items = [
            TextItem(text="3. Förskolan har bra lokaler", x=10, y=100),
            TextItem(text="10%", x=300, y=100),
            TextItem(text="30%", x=350, y=100),
            TextItem(text="60%", x=400, y=100),
        ]
        assert find_gender_chart_pages(items) is None
        assert parse_gender_splits("Resultat per fråga", items) == []

    def test_item_fallback_joins_split_percentage_spans(self):
        items = [
            TextItem(text="Mitt barn trivs bra", x=10, y=100, width=80),
            TextItem(text="4", x=300, y=100, width=6),
            TextItem(text="5%", x=306, y=100, width=12),
            TextItem(text="40%", x=350, y=100, width=18),
            TextItem(text="50%", x=400, y=100, width=18),
        ]
        rows = parse_gender_splits_from_items(items, 1, 1)

        assert (rows[0].pct_total, rows[0].pct_female, rows[0].pct_male) == (45, 40, 50)


DEMOGRAPHICS_TEXT = "\n".join(
    [
        "Barnets födelseår",
        "2019        30%",
        "",
        "2020        45%",
        "Barnets kön",
        "Flicka      48%",
        "Pojke       52%",
        "Svarandens kön",
        "Kvinna      70%",
        "Man         28%",
        "Annat        2%",
        "Svarsfrekvens 80%",
        "Kvinna      99%",
    ]
)


class TestDemographics:
    def test_three_sections(self):
        demographics = parse_demographics(DEMOGRAPHICS_TEXT)

        assert demographics.birth_year == {"2019": 30, "2020": 45}
        assert demographics.child_gender == {"Flicka": 48, "Pojke": 52}
        assert demographics.respondent_gender == {"Kvinna": 70, "Man": 28, "Annat": 2}

    def test_section_closes_on_foreign_key(self):
        text = "Barnets födelseår\n2019        30%\nFlicka      50%\n2020        45%"
        demographics = parse_demographics(text)

        assert demographics.birth_year == {"2019": 30}
        assert demographics.child_gender == {}

    def test_no_sections(self):
        demographics = parse_demographics("")
        assert demographics.birth_year == {}
        assert demographics.respondent_gender == {}


class TestImportantQuestions:
    def test_numbered_entries(self):
        text = "\n".join(
            [
                "Viktigaste frågorna        12",
                "Annan text",
                "De viktigaste frågorna",
                "1. Mitt barn trivs på förskolan      23%",
                "2. Personalen bemöter mig väl        18%",
                "",
                "3. Efter tom rad                     5%",
            ]
        )
        questions = parse_important_questions(text)

        assert [(q.rank, q.question_text, q.pct) for q in questions] == [
            (1, "mitt barn trivs på förskolan", 23),
            (2, "personalen bemöter mig väl", 18),
        ]

    def test_unnumbered_bar_labels(self):
        text = "\n".join(
            [
                "Frågor som har mest betydelse",
                "Mitt barn trivs och känner sig",
                "trygg på förskolan",
                "23%",
                "",
                "Personalen är engagerad i mitt barn  18%",
                "",
                "0%  10%  20%  30%  40%  50%",
                "Efter axeln kommer annat innehåll 5%",
            ]
        )
        questions = parse_important_questions(text)

        assert [(q.rank, q.question_text, q.pct) for q in questions] == [
            (1, "mitt barn trivs och känner sig trygg på förskolan", 23),
            (2, "personalen är engagerad i mitt barn", 18),
        ]

    def test_at_most_five(self):
        lines = ["Viktigaste frågor"] + [
            f"{i}. Fråga nummer {i} om förskolan      {10 + i}%" for i in range(1, 8)
        ]
        assert len(parse_important_questions("\n".join(lines))) == 5


class TestUnitMeans:
    def test_fixed_section_maps_columns_to_areas(self):
        text = "Frågeområde per enhet\nEnhet A     4.10   4.20   4.30   4.40   4.50   4.60"
        means = parse_unit_means(text)

        assert [(m.unit_name, m.area_name, m.mean_value) for m in means] == [
            ("Enhet A", areas.SAFETY, 4.10),
            ("Enhet A", areas.LEARNING, 4.20),
            ("Enhet A", areas.INFLUENCE, 4.30),
            ("Enhet A", areas.RELATIONS, 4.40),
            ("Enhet A", areas.OVERALL, 4.50),
        ]

    def test_legacy_header_columns(self):
        text = "\n".join(
            [
                "              Trygghet    Utveckling    Inflytande",
                "Enhet B       4,10        4,20          4,30",
            ]
        )
        means = parse_unit_means(text)

        assert [(m.area_name, m.mean_value) for m in means] == [
            (areas.SAFETY, 4.10),
            (areas.LEARNING, 4.20),
            (areas.INFLUENCE, 4.30),
        ]
        assert all(m.unit_name == "Enhet B" for m in means)

    def test_fixed_section_ends_at_blank_line_after_rows(self):
        text = "\n".join(
            [
                "Medelvärde per enhet",
                "",
                "Avdelning Sol     4.32   4.10   4.20   4.00   4.50   4.40",
                "",
                "Viktigaste frågorna",
                "Bilaga tabell     1.10   2.20   3.30   4.40   5.50   6.60",
            ]
        )
        assert {m.unit_name for m in parse_unit_means(text)} == {"Avdelning Sol"}

    def test_fixed_section_ends_at_other_chart_header(self):
        text = "\n".join(
            [
                "Frågeområde per enhet",
                "Avdelning Sol     4.32   4.10   4.20   4.00   4.50   4.60",
                "Förskolan Solen | Svarsfrekvens 80%",
                "Bilaga tabell     1.10   2.20   3.30   4.40   5.50   6.60",
            ]
        )
        assert {m.unit_name for m in parse_unit_means(text)} == {"Avdelning Sol"}
