# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
from dataclasses import dataclass, field

from mdtranslate.ir.markdown_document import MarkdownDocument


@dataclass
class AdmissionBatch:
    """
    Documents admitted to run together.

    Attributes:
        documents: Documents in the batch, in admission order.
        indices: Position of each document in the list given to the planner.
        estimated_chunks: Sum of the documents' chunk counts.
        oversized: The batch holds one document whose chunk count alone exceeds the budget.
    """
    documents: list[MarkdownDocument] = field(default_factory=list)
    indices: list[int] = field(default_factory=list)
    estimated_chunks: int = 0
    oversized: bool = False

    def add(self, index: int, document: MarkdownDocument):
        self.documents.append(document)
        self.indices.append(index)
        self.estimated_chunks += document.estimated_chunks


def plan_admission_batches(documents: list[MarkdownDocument], budget: int) -> list[AdmissionBatch]:
    """
    First-fit bin packing of documents on their chunk counts.
    Every document lands in exactly one batch, a document larger than the budget gets a batch of its own.
    """
    if budget < 1:
        raise ValueError(f"budget must be at least 1, got {budget}")

    batches: list[AdmissionBatch] = []
    for index, document in enumerate(documents):
        if document.estimated_chunks > budget:
            batch = AdmissionBatch(oversized=True)
            batch.add(index, document)
            batches.append(batch)
            continue
        for batch in batches:
            if not batch.oversized and batch.estimated_chunks + document.estimated_chunks <= budget:
                batch.add(index, document)
                break
        else:
            batch = AdmissionBatch()
            batch.add(index, document)
            batches.append(batch)
    return batches
