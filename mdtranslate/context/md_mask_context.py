# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
import logging

from mdtranslate.ir.markdown_document import MarkdownDocument
from mdtranslate.logger import global_logger
from mdtranslate.utils.markdown_utils import extract_code_regions, restore_code_regions


class MDMaskCodeContext:
    """
    Hide code from the translator for the duration of the block.

    On enter the document's raw text is masked into clean_text/regions.
    The caller puts the translated clean text into document.translated_text,
    on exit the code is restored into it. Restoration raises CodeBlockRestorationError
    if anchors were damaged and is skipped when the block itself failed.
    """

    def __init__(self, document: MarkdownDocument, logger: logging.Logger = global_logger):
        self.document = document
        self.logger = logger

    def __enter__(self):
        self.document.clean_text, self.document.regions = extract_code_regions(self.document.raw_text, self.logger)
        self.logger.debug(f"{self.document.identifier}: protected {len(self.document.regions)} code regions")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is not None or self.document.translated_text is None:
            return False
        self.document.translated_text = restore_code_regions(
            self.document.translated_text, self.document.regions, self.document.identifier
        )
        return False
