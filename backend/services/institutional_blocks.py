"""Institution-wide timetable data maintained outside the generator.

Fixed lab and fixed theory blocks come from the central timetabling office
and are stamped into the grid before any heuristic placement. Floating
subjects are required every week but have no preset time.
"""

from __future__ import annotations

import copy

from schemas.solver import FixedBlockTable


PLACEMENT_SUBJECT = "Placement Training"

_SEMESTER_ALIASES = {
    "1": "1st",
    "2": "2nd",
    "3": "3rd",
    "4": "4th",
    "5": "5th",
    "6": "6th",
    "7": "7th",
    "8": "8th",
}


FIXED_LAB_SLOTS: dict[str, FixedBlockTable] = {
    "1st": {
        "A": {
            "Monday_9:30–11:30": ["C_A1", "Phy_A2"],
            "Wednesday_2:30–3:30": ["C_A2", "Phy_A1"],
            "Thursday_11:30–1:30": ["Matlab_Full_Asec"],
        },
        "B": {
            "Monday_11:30–1:30": ["C_B1", "Phy_B2"],
            "Wednesday_9:30–11:30": ["C_B2", "Phy_B1"],
            "Tuesday_2:30–4:30": ["Matlab_Full_Bsec"],
        },
        "C": {
            "Tuesday_9:30–11:30": ["C_C1", "Phy_C2"],
            "Thursday_2:30–4:30": ["Clab_C2", "Phy_C1"],
            "Wednesday_11:30–1:30": ["Matlab_Full_Csec"],
        },
        "D": {
            "Monday_9:30–11:30": ["C_D2", "Phy_D1"],
            "Thursday_2:30–4:30": ["Matlab_Full_DSec"],
            "Friday_2:30–4:30": ["Clab_D1", "Phy_D2"],
        },
    },
    "3rd": {
        "A": {
            "Monday_2:30–4:30": ["DS_A3", "OOPS_A2", "LD_A1"],
            "Tuesday_9:30–11:30": ["DS_A3", "DS_A2", "OOPS_A3", "OOPS_A5", "LD_A4"],
            "Wednesday_2:30–4:30": ["DS_A4", "DS_A5", "OOPS_A1", "LD_A2"],
            "Friday_2:30–4:30": ["OOPS_A4", "LD_A3", "LD_A5"],
        },
        "B": {
            "Tuesday_2:30–4:30": ["DS_B2", "DS_B4", "OOPS_B2", "LD_B1"],
            "Wednesday_11:30–1:30": ["DS_B1", "DS_B2", "OOPS_B4", "OOPS_B5", "LD_B3"],
            "Friday_9:30–11:30": ["DS_B5", "OOPS_B1", "OOPS_B3", "LD_B2", "LD_B4"],
            "Saturday_11:30–1:30": ["LD_B5"],
        },
        "C": {
            "Monday_9:30–11:30": ["DS_C3", "OOPS_C2", "LD_C1", "LD_C4"],
            "Thursday_2:30–4:30": ["DS_C2", "OOPS_C4", "LD_C9"],
            "Friday_11:30–1:30": ["DS_C4", "DS_C5", "OOPS_C1", "LD_C3"],
            "Saturday_9:30–11:30": ["DS_C1", "OOPS_C3", "DS_C5", "LD_C2"],
        },
    },
    "5th": {
        "A": {
            "Monday_9:30–11:30": ["OS_A4", "OS_A5", "CN_A1", "CN_A2"],
            "Tuesday_2:30–4:30": ["OS_A1", "OS_A2", "OS_A3"],
            "Friday_11:30–1:30": ["CN_A3", "CN_A4", "CN_A5"],
        },
        "B": {
            "Tuesday_2:30–4:30": ["CN_C5"],
            "Wednesday_2:30–4:30": ["CN_B1", "CN_B2", "CN_B3"],
            "Thursday_11:30–1:30": ["OS_B1", "OS_B2", "OS_B3", "CN_B4", "CN_B5"],
            "Friday_9:30–11:30": ["OS_B4", "OS_B5"],
        },
        "C": {
            "Thursday_9:30–11:30": ["OS_C1", "OS_C2", "OS_C3", "OS_C4", "OS_C5"],
            "Friday_2:30–4:30": ["CN_C1", "CN_C2", "CN_C3", "CN_C4"],
        },
    },
    "7th": {
        "A": {
            "Thursday_2:30–4:30": ["ML_A3", "ML_A4"],
            "Saturday_11:30–1:30": ["ML_A1", "ML_A2"],
        },
        "B": {
            "Tuesday_2:30–4:30": ["ML_B1", "ML_B2", "ML_B3", "ML_B4"],
        },
    },
}


_PE_5TH = {
    "Wednesday_12:30–1:30": ["PE"],
    "Tuesday_9:30–10:30": ["PE"],
    "Friday_9:30–10:30": ["PE"],
}

_ELECTIVES_7TH = {
    "Tuesday_10:30–11:30": ["GEN.AI", "AG VR"],
    "Thursday_9:30–10:30": ["GEN.AI", "AG VR"],
    "Friday_11:30–12:30": ["GEN.AI", "AG VR"],
    "Tuesday_9:30–10:30": ["CY-SEC"],
    "Wednesday_11:30–12:30": ["CY-SEC"],
    "Thursday_10:30–11:30": ["CY-SEC"],
    "Friday_12:30–1:30": ["CY-SEC"],
}

FIXED_THEORY_SLOTS: dict[str, FixedBlockTable] = {
    "5th": {sec: dict(_PE_5TH) for sec in ("A", "B", "C", "D")},
    "7th": {sec: dict(_ELECTIVES_7TH) for sec in ("A", "B", "C", "D")},
}


FLOATING_SUBJECTS: dict[str, list[str]] = {
    "1st": ["Maths", "Physics", "DesignThinking", "electronics"],
    "3rd": ["Maths3"],
}


def semester_key(semester: str) -> str:
    """'1' -> '1st'; already-suffixed tags pass through."""
    s = (semester or "").strip()
    return _SEMESTER_ALIASES.get(s, s)


def fixed_lab_slots_for(semester: str) -> FixedBlockTable:
    return copy.deepcopy(FIXED_LAB_SLOTS.get(semester_key(semester), {}))


def fixed_theory_slots_for(semester: str) -> FixedBlockTable:
    return copy.deepcopy(FIXED_THEORY_SLOTS.get(semester_key(semester), {}))


def floating_subjects_for(semester: str) -> list[str]:
    return list(FLOATING_SUBJECTS.get(semester_key(semester), []))
