from autoblogger.api.validators import count_headings, count_paragraphs, draft_stats, word_count_from_html


def test_word_count_ignores_markup():
    assert word_count_from_html("<p>One <strong>two</strong> three.</p><h2>Four</h2>") == 4


def test_heading_and_paragraph_counts():
    html = "<h2>A</h2><p>x</p><h3>B</h3><p>y</p><p>z</p><h4>ignored</h4>"
    assert count_headings(html) == 2
    assert count_paragraphs(html) == 3


def test_draft_stats():
    assert draft_stats("<p>Hello world</p>") == {"words": 2, "headings": 0, "paragraphs": 1}
