from baton.models import ModelSettings


def test_resolve_override_wins():
    agent_settings = ModelSettings(temperature=0.2, max_tokens=100, tool_choice="required")
    run_settings = ModelSettings(temperature=0.7, top_p=0.9)

    tru_settings = agent_settings.resolve(run_settings)
    exp_settings = ModelSettings(temperature=0.7, top_p=0.9, max_tokens=100, tool_choice="required")
    assert tru_settings == exp_settings


def test_resolve_none():
    settings = ModelSettings(temperature=0.2)

    assert settings.resolve(None) is settings


def test_resolve_merges_extra_args():
    agent_settings = ModelSettings(extra_args={"seed": 1, "user": "agent"})
    run_settings = ModelSettings(extra_args={"user": "run"})

    resolved = agent_settings.resolve(run_settings)

    assert resolved.extra_args == {"seed": 1, "user": "run"}
    assert agent_settings.extra_args == {"seed": 1, "user": "agent"}


def test_to_dict():
    assert ModelSettings().to_dict() == {}
    assert ModelSettings(temperature=0.5, extra_args={"seed": 1}).to_dict() == {
        "temperature": 0.5,
        "extra_args": {"seed": 1},
    }
