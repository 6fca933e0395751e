import pytest

from neuraltokenizer import CharClass, Evaluator, Position, Sentence, SpanMetric, Token, merge_dataset
from neuraltokenizer.evaluator import build_gold_sentences, build_gold_tokens, fix_offset

from conftest import gold_rule, script_classifier


def spans(elements):
    return [(e.position.start, e.position.end) for e in elements]


def test_span_metric():
    metric = SpanMetric(correct=3, predicted_total=4, gold_total=6)

    assert metric.precision == pytest.approx(0.75)
    assert metric.recall == pytest.approx(0.5)
    assert metric.f1_score == pytest.approx(0.6)


def test_span_metric_without_elements():
    assert SpanMetric(correct=0, predicted_total=0, gold_total=5).precision == 0.0
    assert SpanMetric(correct=0, predicted_total=5, gold_total=0).recall == 0.0
    assert SpanMetric().f1_score == 0.0


def test_gold_tokens_skip_single_spaces():
    tokens = build_gold_tokens("Hello world.", [2, 2, 2, 2, 0, 0, 2, 2, 2, 2, 0, 1], sentence_start=10)

    assert [t.form for t in tokens] == ["Hello", "world", "."]
    assert spans(tokens) == [(10, 14), (16, 20), (21, 21)]


def test_gold_sentences_are_contiguous(small_dataset):
    sentences = build_gold_sentences(small_dataset)

    assert spans(sentences) == [(0, 11), (12, 16), (17, 34)]
    assert [t.position.index for s in sentences for t in s.tokens] == list(range(11))
    assert [t.form for t in sentences[2].tokens] == ["It", "is", "5", "p.m.", "now", "."]


def test_fix_offset():
    sentence = Sentence(
        tokens=(Token(form="ab", position=Position(start=3, end=4, index=0)),),
        position=Position(start=2, end=5, index=0),
        text=" ab ")
    other = Sentence(
        tokens=(Token(form="c", position=Position(start=9, end=9, index=1)),),
        position=Position(start=8, end=10, index=1),
        text=" c ")

    fixed = fix_offset([sentence, other])

    assert spans(fixed) == [(0, 3), (4, 6)]
    assert spans(fixed[0].tokens) == [(1, 2)]
    assert spans(fixed[1].tokens) == [(5, 5)]


def test_perfect_classifier(model, small_dataset):
    evaluator = Evaluator(model, max_segment_size=8)
    _, classification = merge_dataset(small_dataset)
    script_classifier(evaluator.tokenizer, gold_rule(classification))

    stats = evaluator.evaluate(small_dataset)

    assert stats.tokens.precision == pytest.approx(1.0)
    assert stats.tokens.recall == pytest.approx(1.0)
    assert stats.sentences.f1_score == pytest.approx(1.0)
    assert stats.accuracy == pytest.approx(1.0)


def test_classifier_without_sentence_boundaries(model, small_dataset):
    evaluator = Evaluator(model)
    _, classification = merge_dataset(small_dataset)
    no_sentences = [CharClass.TOKEN_BOUNDARY if c == CharClass.SENTENCE_BOUNDARY else c for c in classification]
    script_classifier(evaluator.tokenizer, gold_rule(no_sentences))

    stats = evaluator.evaluate(small_dataset)

    assert stats.tokens.f1_score == pytest.approx(1.0)
    assert stats.sentences.precision == 0.0
    assert stats.sentences.recall == 0.0
    assert stats.accuracy == 0.0
    assert stats.to_dict()['tokens']['f1_score'] == pytest.approx(1.0)
    assert "Overall accuracy" in str(stats)
