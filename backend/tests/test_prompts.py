"""
Unit tests for prompt rendering.
"""
import pytest

from app.services.ai.prompts import (
    CHAT_STAGE_TEMPLATES,
    DEFAULT_STAGE,
    area_risk_prompt,
    chat_prompt,
    interior_prompt,
    normalize_stage,
    system_prompt,
)


@pytest.mark.parametrize("stage", ["initial", "analysis", "design", "features", "budget", "floorplan"])
def test_known_stages_have_templates(stage):
    assert normalize_stage(stage) == stage
    assert stage in CHAT_STAGE_TEMPLATES


@pytest.mark.parametrize("stage", [None, "", "unknown", "payment"])
def test_unknown_stages_use_default(stage):
    assert normalize_stage(stage) == DEFAULT_STAGE


def test_questions_answered_is_analysis():
    assert normalize_stage("questions_answered") == "analysis"
    assert normalize_stage(" Analysis ") == "analysis"


def test_default_prompt_is_the_message():
    assert chat_prompt(None, "Rumah 2 kamar?") == "Rumah 2 kamar?"


def test_answers_are_listed():
    prompt = chat_prompt("analysis", "sudah", {"Jumlah penghuni": "4 orang", "Anggaran": "500 juta"})

    assert '"sudah"' in prompt
    assert "- Jumlah penghuni: 4 orang" in prompt
    assert "- Anggaran: 500 juta" in prompt


def test_answer_list_is_listed_by_question_id():
    prompt = chat_prompt(
        "analysis",
        "",
        [{"questionId": "q1", "answer": "4 orang"}, {"questionId": "q2", "answer": "Minimalis"}],
    )

    assert "- q1: 4 orang" in prompt
    assert "- q2: Minimalis" in prompt


def test_braces_in_message_are_kept():
    prompt = chat_prompt("initial", "rumah {minimalis}")
    assert "rumah {minimalis}" in prompt


def test_floorplan_prompt_requests_json():
    prompt = chat_prompt("floorplan", "Gaya Desain: Modern")
    assert '"floorPlan"' in prompt
    assert "Gaya Desain: Modern" in prompt


def test_system_prompt_embeds_catalog():
    houses = [{"id": "h1", "tipe": "Tipe 36", "harga": 450, "material": "Bata ringan"}]
    prompt = system_prompt(houses)

    assert "SiHuni" in prompt
    assert "Tipe 36" in prompt
    assert "Bata ringan" in prompt


def test_system_prompt_with_empty_catalog():
    assert "[]" in system_prompt([])


def test_interior_prompt_formats_budget():
    prompt = interior_prompt(15000000)
    assert "Rp 15.000.000" in prompt
    assert '"recommendations"' in prompt


def test_area_risk_prompt_with_coordinates():
    prompt = area_risk_prompt("Bandung", -6.9, 107.6)
    assert "Bandung (koordinat -6.9, 107.6)" in prompt
    assert '"rekomendasi"' in prompt


def test_area_risk_prompt_without_coordinates():
    prompt = area_risk_prompt("Bogor")
    assert "koordinat" not in prompt
    assert "lokasi Bogor di Indonesia" in prompt
