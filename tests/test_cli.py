import json

import pytest

from neuraltokenizer.cli import build_parser, main


@pytest.fixture
def dataset_file(tmp_path, small_dataset):
    path = tmp_path / "train.json"
    path.write_text(json.dumps([[text, classification] for text, classification in small_dataset]), encoding='utf-8')
    return path


@pytest.fixture
def trained_model(tmp_path, dataset_file, capsys):
    model_path = tmp_path / "model.pt"
    exit_code = main([
        "train", "-l", "en", "-m", str(model_path), "-t", str(dataset_file),
        "-e", "1", "-b", "2", "--max-segment-size", "10",
        "--char-embeddings-size", "4", "--hidden-size", "4", "--seed", "0",
    ])
    assert exit_code == 0
    capsys.readouterr()
    return model_path


def test_parser_requires_a_command():
    with pytest.raises(SystemExit):
        build_parser().parse_args([])


def test_train_defaults():
    args = build_parser().parse_args(["train", "-m", "model.pt", "-t", "train.json"])

    assert args.language == "--"
    assert args.epochs == 30
    assert args.batch_size == 100
    assert args.hidden_size == 100
    assert args.rnn_type == "gru"


def test_train_prints_the_model(tmp_path, dataset_file, capsys):
    model_path = tmp_path / "model.pt"

    exit_code = main(["train", "-l", "en", "-m", str(model_path), "-t", str(dataset_file),
                      "-e", "1", "--hidden-size", "4", "--no-shuffle"])

    out = capsys.readouterr().out
    assert exit_code == 0
    assert model_path.exists()
    assert "SENTENCE_BOUNDARY" in out
    assert "- BiRNN output size: 8" in out


def test_evaluate(trained_model, dataset_file, capsys):
    exit_code = main(["evaluate", "-m", str(trained_model), "-t", str(dataset_file), "--json"])

    stats = json.loads(capsys.readouterr().out)
    assert exit_code == 0
    assert set(stats) == {'accuracy', 'tokens', 'sentences'}
    assert 0.0 <= stats['tokens']['f1_score'] <= 1.0


def test_tokenize(trained_model, tmp_path, capsys):
    text = "Hello world. Bye!"
    input_path = tmp_path / "input.txt"
    input_path.write_text(text, encoding='utf-8')

    exit_code = main(["tokenize", "-m", str(trained_model), "-i", str(input_path), "--json"])

    sentences = json.loads(capsys.readouterr().out)
    assert exit_code == 0
    assert sentences
    for sentence in sentences:
        for token in sentence['tokens']:
            assert token['form'] == text[token['start']:token['end'] + 1]
    assert "".join(t['form'] for s in sentences for t in s['tokens']) == "Helloworld.Bye!"


def test_missing_model(tmp_path, dataset_file):
    assert main(["evaluate", "-m", str(tmp_path / "missing.pt"), "-t", str(dataset_file)]) == 1


def test_invalid_dataset(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("[[\"Hi\", [2, 9]]]", encoding='utf-8')

    assert main(["train", "-m", str(tmp_path / "model.pt"), "-t", str(path), "-e", "1"]) == 1


def test_invalid_language(tmp_path, dataset_file):
    assert main(["train", "-l", "english", "-m", str(tmp_path / "model.pt"), "-t", str(dataset_file)]) == 1


def test_malformed_model(tmp_path, dataset_file):
    model_path = tmp_path / "model.pt"
    model_path.write_bytes(b"this is not a model")

    assert main(["evaluate", "-m", str(model_path), "-t", str(dataset_file)]) == 1
