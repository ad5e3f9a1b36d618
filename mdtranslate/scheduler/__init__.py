# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
from mdtranslate.scheduler.admission import AdmissionBatch, plan_admission_batches
from mdtranslate.scheduler.scheduler import Scheduler

__all__ = ["AdmissionBatch", "plan_admission_batches", "Scheduler"]
