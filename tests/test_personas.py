from photoroast.personas import Persona, available_personas, prompt_for, resolve_persona


def test_prompt_for_is_idempotent():
    assert prompt_for("news-anchor") == prompt_for("news-anchor")


def test_unknown_key_maps_to_default():
    assert prompt_for("no-such-persona") == prompt_for(Persona.DEFAULT)
    assert prompt_for("another-unknown") == prompt_for("no-such-persona")


def test_missing_key_maps_to_default():
    assert prompt_for() == prompt_for("default")
    assert prompt_for(None) == prompt_for("default")


def test_every_persona_has_a_distinct_prompt():
    prompts = {prompt_for(p) for p in Persona}

    assert len(prompts) == len(Persona)
    assert all(p.strip() for p in prompts)


def test_resolve_accepts_enum_and_loose_strings():
    assert resolve_persona(Persona.PROFESSOR) is Persona.PROFESSOR
    assert resolve_persona("  Professor ") is Persona.PROFESSOR
    assert resolve_persona(42) is Persona.DEFAULT


def test_available_personas_lists_default():
    assert "default" in available_personas()
