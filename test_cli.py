"""
Smoke tests for the command line interface.
"""

import pandas as pd
import pytest
import yaml

from vlm_tagger.cli import main


@pytest.fixture
def settings_file(tmp_path):
    path = tmp_path / "settings.yaml"
    path.write_text(
        yaml.safe_dump(
            {
                "logging": {"file": str(tmp_path / "logs" / "vlm_tagger.log")},
                "output": {"directory": str(tmp_path / "output")},
            }
        ),
        encoding="utf-8",
    )
    return str(path)


def test_process_without_credentials_writes_sentinels(settings_file, tmp_path, capsys):
    catalog = tmp_path / "products.csv"
    catalog.write_text("商品名称,图片URL\n托特包,https://img.example.com/1.jpg\n", encoding="utf-8")
    output = tmp_path / "tagged.csv"

    main(["--config", settings_file, "process", str(catalog), "--output", str(output)])

    df = pd.read_csv(output, dtype=str, encoding="utf-8-sig")
    assert df["标签"].tolist() == ["API_NOT_CONFIGURED"]
    assert "Total products: 1" in capsys.readouterr().out


def test_process_exits_on_empty_catalog(settings_file, tmp_path):
    catalog = tmp_path / "empty.csv"
    catalog.write_bytes(b"")

    with pytest.raises(SystemExit) as excinfo:
        main(["--config", settings_file, "process", str(catalog)])
    assert excinfo.value.code == 1


def test_summary_of_result_file(settings_file, tmp_path, capsys):
    results = tmp_path / "results.csv"
    pd.DataFrame(
        [["托特包", "https://img.example.com/1.jpg", "托特包|黑色"], ["卫衣", "", "NO_IMAGE"]],
        columns=["商品名称", "图片URL", "标签"],
    ).to_csv(results, index=False, encoding="utf-8-sig")

    main(["--config", settings_file, "summary", str(results)])

    out = capsys.readouterr().out
    assert "Succeeded: 1" in out
    assert "NO_IMAGE: 1" in out


def test_tags_lists_vocabularies(settings_file, capsys):
    main(["--config", settings_file, "tags"])

    out = capsys.readouterr().out
    assert "shoe_lace" in out
    assert "有鞋带" in out


def test_config_option_after_subcommand(settings_file, tmp_path):
    catalog = tmp_path / "products.csv"
    catalog.write_text("托特包,https://img.example.com/1.jpg\n", encoding="utf-8")

    main(["process", str(catalog), "--config", settings_file])

    written = list((tmp_path / "output").glob("商品标签结果_*.xlsx"))
    assert len(written) == 1
