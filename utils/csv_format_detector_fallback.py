import pandas as pd
import csv
import chardet
import logging

logger = logging.getLogger(__name__)

class CSVFormatDetectorFallback:
    """Sniff encoding and separator of an hourly energy CSV without any external service."""

    def __init__(self):
        self.common_separators = [',', ';', '\t', '|']
        self.na_values = ['', 'NA', 'N/A', 'null', 'NULL', 'None', '-']

    def detect_format(self, file_path):
        """Detect pandas.read_csv() parameters for the file."""
        encoding = self._detect_encoding(file_path)
        separator = self._detect_separator(file_path, encoding)

        params = {
            'sep': separator,
            'encoding': encoding,
            'na_values': self.na_values,
            'keep_default_na': False,
            'skipinitialspace': True,
            'quotechar': '"',
            # Date/Time/flag columns must survive as text
            'dtype': str,
        }

        try:
            pd.read_csv(file_path, nrows=5, **params)
        except Exception as e:
            logger.error(f"Format detection failed: {e}")
            raise
        logger.info(f"Detected format: sep={separator!r}, encoding={encoding}")
        return params

    def read(self, file_path):
        """Read the whole file with the detected parameters."""
        params = self.detect_format(file_path)
        return pd.read_csv(file_path, **params)

    def _detect_encoding(self, file_path):
        with open(file_path, 'rb') as f:
            raw_data = f.read(10000)
        if raw_data.startswith(b'\xef\xbb\xbf'):
            return 'utf-8-sig'
        result = chardet.detect(raw_data)
        encoding = result['encoding']
        if encoding and result['confidence'] > 0.7:
            # ASCII is a subset of UTF-8; later rows may still carry UTF-8 text
            return 'utf-8' if encoding.lower() == 'ascii' else encoding
        logger.warning(f"Low confidence encoding detection ({result}), defaulting to utf-8")
        return 'utf-8'

    def _detect_separator(self, file_path, encoding):
        with open(file_path, 'r', encoding=encoding) as f:
            sample = ''.join(f.readline() for _ in range(5))

        try:
            dialect = csv.Sniffer().sniff(sample, delimiters=',;|\t')
            return dialect.delimiter
        except csv.Error:
            logger.warning("csv.Sniffer could not determine the separator, counting candidates")

        separator_counts = {sep: sample.count(sep) for sep in self.common_separators}
        best_separator = max(separator_counts, key=separator_counts.get)
        if separator_counts[best_separator] > 0:
            return best_separator
        return ','
