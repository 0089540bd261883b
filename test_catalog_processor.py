"""
Tests for row extraction and the result sheet writer.
"""

import io
from pathlib import Path

import pandas as pd
import pytest

from vlm_tagger.core.catalog_processor import (
    OUTPUT_COLUMNS,
    CatalogProcessor,
    EmptyInputError,
    ExtractionFailure,
    MalformedContainerError,
    NoValidRowsError,
)
from vlm_tagger.models.product import TagOutcome, TagResult, TagStatus


@pytest.fixture
def processor(config):
    return CatalogProcessor(config)


def make_xlsx(rows):
    buffer = io.BytesIO()
    pd.DataFrame(rows).to_excel(buffer, header=False, index=False, engine="openpyxl")
    return buffer.getvalue()


def test_csv_without_header_yields_every_row_in_order(processor):
    data = (
        "经典手提包,https://img.example.com/1.jpg\n"
        "羊毛大衣,https://img.example.com/2.jpg\n"
        "运动鞋,https://img.example.com/3.jpg\n"
    ).encode("utf-8")

    rows = processor.extract_rows(data, "products.csv")

    assert [r.product_name for r in rows] == ["经典手提包", "羊毛大衣", "运动鞋"]
    assert rows[1].image_url == "https://img.example.com/2.jpg"


@pytest.mark.parametrize("header", ["商品名称", "Product Name", "NAME", "名称"])
def test_header_row_is_skipped(processor, header):
    data = f"{header},图片URL\n托特包,https://img.example.com/1.jpg\n".encode("utf-8")

    rows = processor.extract_rows(data, "products.csv")

    assert len(rows) == 1
    assert rows[0].product_name == "托特包"


def test_first_row_without_marker_is_data(processor):
    data = "标题,链接\n托特包,https://img.example.com/1.jpg\n".encode("utf-8")

    rows = processor.extract_rows(data, "products.csv")

    assert [r.product_name for r in rows] == ["标题", "托特包"]


def test_rows_with_both_cells_empty_are_skipped(processor):
    data = (
        "托特包,https://img.example.com/1.jpg\n"
        " , \n"
        "卫衣,https://img.example.com/2.jpg\n"
    ).encode("utf-8")

    rows = processor.extract_rows(data, "products.csv")

    assert [r.product_name for r in rows] == ["托特包", "卫衣"]


def test_invalid_image_url_is_kept(processor, caplog):
    data = "托特包,not-a-url\n卫衣,\n".encode("utf-8")

    rows = processor.extract_rows(data, "products.csv")

    assert [(r.product_name, r.image_url) for r in rows] == [
        ("托特包", "not-a-url"),
        ("卫衣", ""),
    ]
    assert "Invalid image URL" in caplog.text


def test_quoted_csv_cells_are_unwrapped(processor):
    data = '"托特包, 小号","https://img.example.com/1.jpg?x-oss-process=a"\n'.encode("utf-8")

    rows = processor.extract_rows(data, "products.csv")

    assert rows[0].product_name == "托特包, 小号"
    assert rows[0].image_url.endswith("?x-oss-process=a")


def test_gb18030_csv_is_decoded(processor):
    data = "羊毛大衣,https://img.example.com/2.jpg\n".encode("gb18030")

    rows = processor.extract_rows(data, "products.csv")

    assert rows[0].product_name == "羊毛大衣"


def test_csv_single_cell_title_row_is_ignored(processor):
    data = (
        "商品列表\n"
        "托特包,https://img.example.com/1.jpg\n"
        "卫衣,https://img.example.com/2.jpg\n"
    ).encode("utf-8")

    rows = processor.extract_rows(data, "products.csv")

    assert [r.product_name for r in rows] == ["托特包", "卫衣"]


def test_csv_row_with_extra_column_is_data(processor):
    data = (
        "托特包,https://img.example.com/1.jpg\n"
        "卫衣,https://img.example.com/2.jpg,备注\n"
        "乐福鞋,https://img.example.com/3.jpg\n"
    ).encode("utf-8")

    rows = processor.extract_rows(data, "products.csv")

    assert [(r.product_name, r.image_url) for r in rows] == [
        ("托特包", "https://img.example.com/1.jpg"),
        ("卫衣", "https://img.example.com/2.jpg"),
        ("乐福鞋", "https://img.example.com/3.jpg"),
    ]


def test_csv_single_cell_rows_between_products_are_ignored(processor):
    data = (
        "托特包,https://img.example.com/1.jpg\n"
        "只有名称\n"
        "\n"
        "卫衣,https://img.example.com/2.jpg\n"
    ).encode("utf-8")

    rows = processor.extract_rows(data, "products.csv")

    assert [r.product_name for r in rows] == ["托特包", "卫衣"]


def test_blank_lines_only_csv_is_empty(processor):
    with pytest.raises(EmptyInputError):
        processor.extract_rows(b"\n\n", "products.csv")


def test_xlsx_first_sheet_with_header(processor):
    data = make_xlsx(
        [
            ["商品名称", "图片URL"],
            ["手拿包", "https://img.example.com/1.jpg"],
            [None, None],
            ["乐福鞋", "https://img.example.com/2.jpg"],
        ]
    )

    rows = processor.extract_rows(data, "products.xlsx")

    assert [r.product_name for r in rows] == ["手拿包", "乐福鞋"]


def test_xlsx_rows_with_a_single_cell_are_ignored(processor):
    data = make_xlsx(
        [
            ["手拿包", "https://img.example.com/1.jpg"],
            ["只有名称", None],
        ]
    )

    rows = processor.extract_rows(data, "products.xlsx")

    assert [r.product_name for r in rows] == ["手拿包"]


def test_xlsx_numeric_names_become_strings(processor):
    data = make_xlsx([[10086, "https://img.example.com/1.jpg"]])

    rows = processor.extract_rows(data, "products.xlsx")

    assert rows[0].product_name == "10086"


def test_empty_file_fails(processor):
    with pytest.raises(EmptyInputError) as excinfo:
        processor.extract_rows(b"", "products.csv")
    assert excinfo.value.reason is ExtractionFailure.EMPTY_INPUT


def test_header_only_file_has_no_valid_rows(processor):
    with pytest.raises(NoValidRowsError) as excinfo:
        processor.extract_rows("商品名称,图片URL\n".encode("utf-8"), "products.csv")
    assert excinfo.value.reason is ExtractionFailure.NO_VALID_ROWS


def test_single_column_file_has_no_valid_rows(processor):
    with pytest.raises(NoValidRowsError):
        processor.extract_rows("托特包\n卫衣\n".encode("utf-8"), "products.csv")


def test_garbage_spreadsheet_is_malformed(processor):
    with pytest.raises(MalformedContainerError):
        processor.extract_rows(b"definitely not a zip container", "products.xlsx")


def test_process_catalog_file_missing(processor, tmp_path):
    with pytest.raises(FileNotFoundError):
        processor.process_catalog_file(str(tmp_path / "nope.csv"))


def sample_results():
    return [
        TagResult(
            product_name="经典手提包",
            image_url="https://img.example.com/1.jpg",
            outcome=TagOutcome.success(["手提包", "黑色", "皮革"]),
        ),
        TagResult(
            product_name="羊毛大衣",
            image_url="not-a-url",
            outcome=TagOutcome.failure(TagStatus.NO_IMAGE),
        ),
        TagResult(
            product_name="运动鞋",
            image_url="https://img.example.com/3.jpg",
            outcome=TagOutcome.failure(TagStatus.FAILED),
        ),
    ]


def test_export_writes_three_named_columns(processor):
    data = processor.export_results(sample_results())

    df = pd.read_excel(io.BytesIO(data), sheet_name="标签结果", dtype=str)

    assert list(df.columns) == list(OUTPUT_COLUMNS)
    assert df.values.tolist() == [
        ["经典手提包", "https://img.example.com/1.jpg", "手提包|黑色|皮革"],
        ["羊毛大衣", "not-a-url", "NO_IMAGE"],
        ["运动鞋", "https://img.example.com/3.jpg", "FAILED"],
    ]


@pytest.mark.parametrize("file_name", ["results.xlsx", "results.csv"])
def test_results_read_back_equal(processor, file_name):
    results = sample_results()

    data = processor.export_results(results, file_name)

    assert processor.load_results(data, file_name) == results


def test_save_results_uses_dated_default_name(processor, config):
    path = processor.save_results(sample_results())

    assert path.parent == Path(config.get("output.directory"))
    assert path.name.startswith("商品标签结果_")
    assert path.suffix == ".xlsx"
    assert path.exists()
