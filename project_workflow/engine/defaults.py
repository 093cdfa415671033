#!/usr/bin/env python3
"""
Canonical Default Workflow Structure

The organization's standard approval pipeline, compiled in as YAML text:

    offer -> approval -> DP invoice -> DP approval -> admin files
          -> architecture -> structure -> MEP -> sidang scheduling
          -> sidang outcome -> completed / canceled

It seeds the default workflow, every newly added workflow, and the store's
repair pass. It is a constant, not user data: bump the structure here and the
store's step-count check overwrites a stale default workflow on next read.
"""

import yaml

from .models import (
    DEFAULT_WORKFLOW_DESCRIPTION,
    DEFAULT_WORKFLOW_ID,
    DEFAULT_WORKFLOW_NAME,
    Workflow,
    WorkflowStep,
)


# ---------------------------------------------------------------------------
# Standard structure (camelCase keys match the persisted document)
# ---------------------------------------------------------------------------

DEFAULT_STANDARD_WORKFLOW_YAML = """
- stepName: "Offer Submission"
  status: "Pending Offer"
  assignedDivision: "Admin Proyek"
  progress: 10
  nextActionDescription: "Unggah Dokumen Penawaran"
  transitions:
    submitted:
      targetStatus: "Pending Approval"
      targetAssignedDivision: "Owner"
      targetNextActionDescription: "Setujui Dokumen Penawaran"
      targetProgress: 20
      notification:
        division: "Owner"
        message: "Penawaran untuk proyek '{projectName}' telah diajukan dan menunggu persetujuan Anda."

- stepName: "Offer Approval"
  status: "Pending Approval"
  assignedDivision: "Owner"
  progress: 20
  nextActionDescription: "Tinjau dan setujui/tolak penawaran"
  transitions:
    approved:
      targetStatus: "Pending DP Invoice"
      targetAssignedDivision: "General Admin"
      targetNextActionDescription: "Buat Faktur DP"
      targetProgress: 25
      notification:
        division: "General Admin"
        message: "Penawaran untuk proyek '{projectName}' telah disetujui. Mohon buat faktur DP."
    rejected:
      targetStatus: "Canceled"
      targetAssignedDivision: ""
      targetNextActionDescription: null
      targetProgress: 20
      notification:
        division: "Admin Proyek"
        message: "Penawaran untuk proyek '{projectName}' ditolak oleh Owner."

- stepName: "DP Invoice Submission"
  status: "Pending DP Invoice"
  assignedDivision: "General Admin"
  progress: 25
  nextActionDescription: "Unggah Faktur DP"
  transitions:
    submitted:
      targetStatus: "Pending Approval"
      targetAssignedDivision: "Owner"
      targetNextActionDescription: "Setujui Faktur DP"
      targetProgress: 30
      notification:
        division: "Owner"
        message: "Faktur DP untuk proyek '{projectName}' telah diajukan dan menunggu persetujuan Anda."

# Same status as Offer Approval; progress 30 tells the two apart.
- stepName: "DP Invoice Approval"
  status: "Pending Approval"
  assignedDivision: "Owner"
  progress: 30
  nextActionDescription: "Tinjau dan setujui/tolak Faktur DP"
  transitions:
    approved:
      targetStatus: "Pending Admin Files"
      targetAssignedDivision: "Admin Proyek"
      targetNextActionDescription: "Unggah Berkas Administrasi"
      targetProgress: 40
      notification:
        division: "Admin Proyek"
        message: "Faktur DP untuk proyek '{projectName}' telah disetujui. Mohon unggah berkas administrasi."
    rejected:
      targetStatus: "Pending DP Invoice"
      targetAssignedDivision: "General Admin"
      targetNextActionDescription: "Revisi dan Unggah Ulang Faktur DP"
      targetProgress: 25
      notification:
        division: "General Admin"
        message: "Faktur DP untuk proyek '{projectName}' ditolak oleh Owner. Mohon direvisi."

- stepName: "Admin Files Submission"
  status: "Pending Admin Files"
  assignedDivision: "Admin Proyek"
  progress: 40
  nextActionDescription: "Unggah Berkas Administrasi"
  transitions:
    submitted:
      targetStatus: "Pending Architect Files"
      targetAssignedDivision: "Arsitek"
      targetNextActionDescription: "Unggah Berkas Arsitektur"
      targetProgress: 50
      notification:
        division: "Arsitek"
        message: "Berkas administrasi untuk '{projectName}' lengkap. Mohon unggah berkas arsitektur."

- stepName: "Architect Files Submission"
  status: "Pending Architect Files"
  assignedDivision: "Arsitek"
  progress: 50
  nextActionDescription: "Unggah Berkas Arsitektur"
  transitions:
    submitted:
      targetStatus: "Pending Structure Files"
      targetAssignedDivision: "Struktur"
      targetNextActionDescription: "Unggah Berkas Struktur"
      targetProgress: 70
      notification:
        division: "Struktur"
        message: "Berkas arsitektur untuk '{projectName}' lengkap. Mohon unggah berkas struktur."

- stepName: "Structure Files Submission"
  status: "Pending Structure Files"
  assignedDivision: "Struktur"
  progress: 70
  nextActionDescription: "Unggah Berkas Struktur"
  transitions:
    submitted:
      targetStatus: "Pending MEP Files"
      targetAssignedDivision: "Admin Proyek"
      targetNextActionDescription: "Unggah Berkas MEP"
      targetProgress: 80
      notification:
        division: "Admin Proyek"
        message: "Berkas struktur untuk '{projectName}' lengkap. Mohon unggah berkas MEP."

- stepName: "MEP Files Submission"
  status: "Pending MEP Files"
  assignedDivision: "Admin Proyek"
  progress: 80
  nextActionDescription: "Unggah Berkas MEP"
  transitions:
    submitted:
      targetStatus: "Pending Scheduling"
      targetAssignedDivision: "Admin Proyek"
      targetNextActionDescription: "Jadwalkan Sidang"
      targetProgress: 90
      notification:
        division: "Admin Proyek"
        message: "Semua berkas teknis untuk '{projectName}' lengkap. Mohon jadwalkan sidang."

- stepName: "Sidang Scheduling"
  status: "Pending Scheduling"
  assignedDivision: "Admin Proyek"
  progress: 90
  nextActionDescription: "Jadwalkan Sidang"
  transitions:
    scheduled:
      targetStatus: "Scheduled"
      targetAssignedDivision: "Owner"
      targetNextActionDescription: "Nyatakan Hasil Sidang"
      targetProgress: 95
      notification:
        division: "Owner"
        message: "Sidang untuk proyek '{projectName}' telah dijadwalkan. Mohon nyatakan hasilnya setelah selesai."

- stepName: "Sidang Outcome Declaration"
  status: "Scheduled"
  assignedDivision: "Owner"
  progress: 95
  nextActionDescription: "Nyatakan Hasil Sidang (Sukses/Revisi/Batal)"
  transitions:
    completed:
      targetStatus: "Completed"
      targetAssignedDivision: ""
      targetNextActionDescription: null
      targetProgress: 100
      notification: null
    # Revision loops back to the admin files stage.
    revise_after_sidang:
      targetStatus: "Pending Admin Files"
      targetAssignedDivision: "Admin Proyek"
      targetNextActionDescription: "Lakukan Revisi Pasca Sidang"
      targetProgress: 40
      notification:
        division: "Admin Proyek"
        message: "Proyek '{projectName}' memerlukan revisi setelah sidang. Mohon perbarui berkas yang diperlukan."
    canceled_after_sidang:
      targetStatus: "Canceled"
      targetAssignedDivision: ""
      targetNextActionDescription: null
      targetProgress: 95
      notification: null

- stepName: "Project Completed"
  status: "Completed"
  assignedDivision: ""
  progress: 100
  nextActionDescription: null
  transitions: null

- stepName: "Project Canceled"
  status: "Canceled"
  assignedDivision: ""
  progress: 0
  nextActionDescription: null
  transitions: null
"""

_CANONICAL_STEP_DICTS: list[dict] = yaml.safe_load(DEFAULT_STANDARD_WORKFLOW_YAML)


def canonical_step_dicts() -> list[dict]:
    """Return the canonical structure as fresh plain dicts (persisted form)."""
    return [WorkflowStep.from_dict(d).to_dict() for d in _CANONICAL_STEP_DICTS]


def canonical_steps() -> list[WorkflowStep]:
    """Return a fresh deep copy of the canonical step structure."""
    return [WorkflowStep.from_dict(d) for d in _CANONICAL_STEP_DICTS]


def canonical_step_count() -> int:
    return len(_CANONICAL_STEP_DICTS)


def default_workflow() -> Workflow:
    """Build the default workflow record with the full canonical structure."""
    return Workflow(
        id=DEFAULT_WORKFLOW_ID,
        name=DEFAULT_WORKFLOW_NAME,
        description=DEFAULT_WORKFLOW_DESCRIPTION,
        steps=canonical_steps(),
    )
