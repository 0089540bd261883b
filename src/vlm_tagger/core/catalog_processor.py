import csv
import io
import logging
import math
from datetime import date
from enum import Enum
from pathlib import Path
from typing import Any, List, Optional

import pandas as pd

from ..models.product import ProductRow, TagOutcome, TagResult
from ..utils.config import ConfigManager

logger = logging.getLogger(__name__)

HEADER_MARKERS = ("名称", "name", "商品", "product")
OUTPUT_COLUMNS = ("商品名称", "图片URL", "标签")
OUTPUT_SHEET_NAME = "标签结果"
CSV_ENCODINGS = ("utf-8-sig", "gb18030", "latin-1")


class ExtractionFailure(str, Enum):
    EMPTY_INPUT = "empty_input"
    NO_VALID_ROWS = "no_valid_rows"
    MALFORMED_CONTAINER = "malformed_container"


class RowExtractionError(ValueError):
    """Raised when an uploaded catalog yields no usable product rows"""

    reason = ExtractionFailure.MALFORMED_CONTAINER

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class EmptyInputError(RowExtractionError):
    reason = ExtractionFailure.EMPTY_INPUT


class NoValidRowsError(RowExtractionError):
    reason = ExtractionFailure.NO_VALID_ROWS


class MalformedContainerError(RowExtractionError):
    reason = ExtractionFailure.MALFORMED_CONTAINER


def default_output_name(suffix: str = ".xlsx") -> str:
    return f"商品标签结果_{date.today().isoformat()}{suffix}"


def _is_csv(file_name: Optional[str]) -> bool:
    return bool(file_name) and file_name.lower().endswith(".csv")


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, float) and math.isnan(value))


def _cell_to_str(value: Any) -> str:
    if _is_blank(value):
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


class CatalogProcessor:
    """Reads (name, image URL) catalogs and writes tag result sheets"""

    def __init__(self, config_manager: Optional[ConfigManager] = None):
        self.config = config_manager or ConfigManager()

        # Anything that is not CSV is read as a spreadsheet container
        self.supported_formats = {".csv", ".xlsx", ".xlsm"}

    def process_catalog_file(self, file_path: str) -> List[ProductRow]:
        """
        Read a catalog file from disk and extract its product rows

        Args:
            file_path: Path to catalog file

        Returns:
            List of ProductRow objects in sheet order
        """
        file_path_obj = Path(file_path)

        if not file_path_obj.exists():
            raise FileNotFoundError(f"Catalog file not found: {file_path}")

        if file_path_obj.suffix.lower() not in self.supported_formats:
            logger.warning(
                f"Unrecognised extension {file_path_obj.suffix}, reading as spreadsheet"
            )

        logger.info(f"Processing catalog file: {file_path}")
        return self.extract_rows(file_path_obj.read_bytes(), file_path_obj.name)

    def extract_rows(
        self, data: bytes, file_name: Optional[str] = None
    ) -> List[ProductRow]:
        """
        Extract product rows from raw tabular bytes

        The first column holds the product name and the second the image URL.
        A leading header row is skipped when its first cell mentions a name or
        product. Rows with fewer than two cells are ignored and rows whose
        first two cells are both empty are skipped.

        Raises:
            EmptyInputError: the file holds no cells
            NoValidRowsError: no row produced a product
            MalformedContainerError: the bytes could not be decoded
        """
        grid = self._read_grid(data, file_name)

        if not grid:
            raise EmptyInputError("文件为空")

        start_index = 1 if self._is_header_row(grid[0]) else 0
        products = []

        for i in range(start_index, len(grid)):
            row = grid[i]
            if len(row) < 2:
                continue

            product_name = _cell_to_str(row[0])
            image_url = _cell_to_str(row[1])

            if not product_name and not image_url:
                continue

            if not image_url.startswith("http"):
                logger.warning(f"Row {i + 1}: Invalid image URL: {image_url}")

            products.append(ProductRow(product_name=product_name, image_url=image_url))

        if not products:
            raise NoValidRowsError("未找到有效的商品数据")

        logger.info(f"Extracted {len(products)} products from {file_name or 'upload'}")
        return products

    def _read_grid(self, data: bytes, file_name: Optional[str]) -> List[List[Any]]:
        """Decode bytes into rows of cells, each row keeping its own length"""
        if not data:
            return []

        if _is_csv(file_name):
            return self._read_csv(data)

        df = self._read_excel(data)
        grid = []
        for values in df.itertuples(index=False, name=None):
            # Sheet rows are padded to the widest row; unfilled cells read as NaN
            row = list(values)
            while row and _is_blank(row[-1]):
                row.pop()
            grid.append(row)
        return grid

    def _read_csv(self, data: bytes) -> List[List[str]]:
        """Read CSV bytes line by line so each row keeps its own cell count"""
        for encoding in CSV_ENCODINGS:
            try:
                text = data.decode(encoding)
            except UnicodeDecodeError:
                continue

            try:
                rows = list(csv.reader(io.StringIO(text, newline="")))
            except csv.Error as e:
                logger.error(f"File parsing error: {e}")
                raise MalformedContainerError("文件解析失败，请检查格式") from e

            # csv yields an empty list for a blank line
            return [row for row in rows if row]

        raise MalformedContainerError("Unable to read CSV file with any supported encoding")

    def _read_excel(self, data: bytes) -> pd.DataFrame:
        """Read the first sheet of a spreadsheet container"""
        try:
            return pd.read_excel(
                io.BytesIO(data), sheet_name=0, header=None, dtype=object
            )
        except Exception as e:
            logger.error(f"File parsing error: {e}")
            raise MalformedContainerError("文件解析失败，请检查格式") from e

    @staticmethod
    def _is_header_row(row: List[Any]) -> bool:
        if not row or not isinstance(row[0], str):
            return False
        first_cell = row[0].lower()
        return any(marker in first_cell for marker in HEADER_MARKERS)

    def export_results(
        self, results: List[TagResult], file_name: Optional[str] = None
    ) -> bytes:
        """Project results onto the three-column output sheet"""
        df = pd.DataFrame(
            [[r.product_name, r.image_url, r.tags] for r in results],
            columns=list(OUTPUT_COLUMNS),
        )

        if _is_csv(file_name):
            return df.to_csv(index=False).encode("utf-8-sig")

        buffer = io.BytesIO()
        df.to_excel(buffer, sheet_name=OUTPUT_SHEET_NAME, index=False, engine="openpyxl")
        return buffer.getvalue()

    def save_results(
        self, results: List[TagResult], output_path: Optional[str] = None
    ) -> Path:
        """Write results to disk, defaulting to a dated file in the output directory"""
        if output_path:
            path = Path(output_path)
        else:
            path = Path(self.config.get("output.directory", "./output")) / default_output_name()

        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(self.export_results(results, path.name))
        logger.info(f"Results saved to {path}")
        return path

    def load_results(
        self, data: bytes, file_name: Optional[str] = None
    ) -> List[TagResult]:
        """Read a result sheet written by export_results back into TagResults"""
        try:
            if _is_csv(file_name):
                df = pd.read_csv(
                    io.BytesIO(data), dtype=str, keep_default_na=False, encoding="utf-8-sig"
                )
            else:
                df = pd.read_excel(io.BytesIO(data), sheet_name=0, dtype=object)
        except Exception as e:
            raise MalformedContainerError("文件解析失败，请检查格式") from e

        missing = [c for c in OUTPUT_COLUMNS if c not in df.columns]
        if missing:
            raise MalformedContainerError(f"Missing result columns: {', '.join(missing)}")

        name_col, url_col, tags_col = OUTPUT_COLUMNS
        return [
            TagResult(
                product_name=_cell_to_str(row[name_col]),
                image_url=_cell_to_str(row[url_col]),
                outcome=TagOutcome.from_cell(_cell_to_str(row[tags_col])),
            )
            for row in df.to_dict("records")
        ]
