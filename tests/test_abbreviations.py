from neuraltokenizer import AbbreviationTable, load_abbreviations


def test_english_resource_is_loaded():
    table = load_abbreviations('en')

    assert table is not None
    assert "mr." in table
    assert table.max_length >= len("mr.")


def test_missing_language_has_no_table():
    assert load_abbreviations('--') is None
    assert load_abbreviations('xx') is None


def test_period_after_mr_ends_an_abbreviation():
    table = load_abbreviations('en')
    text = "Mr. Smith went home."

    assert table.is_end_of_abbreviation(text, 2)
    assert not table.is_end_of_abbreviation(text, len(text) - 1)


def test_lookup_is_case_insensitive():
    table = AbbreviationTable(["Dr."])

    assert table.is_end_of_abbreviation("DR. Who", 2)
    assert table.is_end_of_abbreviation("dr. Who", 2)


def test_only_periods_can_end_an_abbreviation():
    table = AbbreviationTable(["mr."])

    assert not table.is_end_of_abbreviation("Mr. Smith", 1)
    assert not table.is_end_of_abbreviation(".", 0)


def test_search_stops_at_whitespace():
    table = AbbreviationTable(["e.g."])

    assert table.is_end_of_abbreviation("see e.g. this", 7)
    # "e." alone is not in the table
    assert not table.is_end_of_abbreviation("see e.g. this", 5)
    # the candidate cannot cross the space before "g."
    assert not AbbreviationTable(["e g."]).is_end_of_abbreviation("see e g. this", 7)


def test_abbreviation_inside_a_longer_word():
    table = AbbreviationTable(["mr."])

    assert table.is_end_of_abbreviation("(Mr. Smith)", 3)


def test_blank_lines_are_ignored(tmp_path):
    file_path = tmp_path / "xx.txt"
    file_path.write_text("etc.\n\n  \nvs.\n", encoding='utf-8')

    table = AbbreviationTable.from_file(file_path)

    assert len(table) == 2
    assert table.max_length == 4
