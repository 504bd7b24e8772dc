# tests/core/config/test_loader.py
"""
Testes do loader de configuração (settings) do flowmake.

Este módulo valida o carregamento dos settings do engine a partir dos
defaults embutidos, de um arquivo de defaults do projeto e de um arquivo
local opcional.

Os testes asseguram que:
- sem arquivos, os defaults embutidos são retornados
- um arquivo de defaults informado e ausente é erro explícito
- um arquivo local ausente é ignorado
- o override local prevalece sobre os defaults (deep-merge)
- raízes não-dict e extensões desconhecidas são rejeitadas
- YAML/JSON com sintaxe inválida ou bytes não UTF-8 viram MalformedConfigError

Decisões arquiteturais:
    - Arquivos são escritos em `tmp_path`
    - Erros de configuração herdam de ConfigError (código de saída 4 na CLI)

Limites explícitos:
    - Não valida a materialização em EngineSettings (ver test_settings)
"""

from pathlib import Path

import pytest

try:
    from flowmake.core.config.errors import (
        ConfigTypeConflictError,
        DefaultsNotFoundError,
        InvalidConfigRootTypeError,
        MalformedConfigError,
        UnsupportedConfigFormatError,
    )
    from flowmake.core.config.loader import DEFAULT_SETTINGS, load_config
    from flowmake.core.exceptions import ConfigError
except Exception as e:
    load_config = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    """
    Garante que o loader de configuração esteja disponível para os testes.

    Falha imediatamente, listando as APIs esperadas, quando o import falha.
    """
    if _IMPORT_ERR is not None:
        pytest.fail(f"""Missing config loader. Implement:
- flowmake.core.config.loader.load_config
- flowmake.core.config.errors
Import error: {_IMPORT_ERR}
""")


def test_builtin_defaults_without_files():
    _require_imports()
    cfg = load_config()
    assert cfg == DEFAULT_SETTINGS
    assert cfg is not DEFAULT_SETTINGS


def test_missing_defaults_raises(tmp_path: Path):
    """
    Verifica que um arquivo de defaults explicitamente informado deve existir.

    Invariantes:
        - A exceção é DefaultsNotFoundError (ConfigError)
        - `details["path"]` identifica o arquivo
    """
    _require_imports()
    missing = tmp_path / "flowmake.yaml"
    with pytest.raises(DefaultsNotFoundError) as exc:
        load_config(defaults_path=str(missing))
    assert isinstance(exc.value, ConfigError)
    assert exc.value.details["path"] == str(missing)


def test_missing_local_is_ok(tmp_path: Path, project_settings_defaults_yaml):
    _require_imports()
    defaults = tmp_path / "flowmake.yaml"
    defaults.write_text(project_settings_defaults_yaml, encoding="utf-8")

    cfg = load_config(defaults_path=str(defaults), local_path=str(tmp_path / "flowmake.local.yaml"))

    assert cfg["engine"]["concurrency"] == 4
    assert cfg["engine"]["continue_on_error"] is None
    assert cfg["matrix"]["fail_fast"] is True


def test_load_defaults_and_local(tmp_path: Path, project_settings_defaults_yaml, project_settings_local_yaml):
    """
    Verifica a precedência do override local sobre os defaults do projeto.

    Invariantes:
        - Valores do local sobrescrevem os defaults (concurrency, tasks.coverage.enabled)
        - Valores não sobrescritos são preservados (manifest_path)
        - `null` nos defaults embutidos aceita override tipado (continue_on_error)
    """
    _require_imports()
    defaults = tmp_path / "flowmake.yaml"
    local = tmp_path / "flowmake.local.yaml"
    defaults.write_text(project_settings_defaults_yaml, encoding="utf-8")
    local.write_text(project_settings_local_yaml, encoding="utf-8")

    cfg = load_config(defaults_path=str(defaults), local_path=str(local))

    assert cfg["engine"] == {
        "concurrency": 1,
        "continue_on_error": True,
        "manifest_path": "build/flowmake-manifest.json",
    }
    assert cfg["tasks"] == {"coverage": {"enabled": False}}


def test_json_local_override(tmp_path: Path):
    _require_imports()
    local = tmp_path / "flowmake.local.json"
    local.write_text('{"matrix": {"fail_fast": false}}', encoding="utf-8")

    assert load_config(local_path=str(local))["matrix"]["fail_fast"] is False


def test_empty_file_is_empty_mapping(tmp_path: Path):
    _require_imports()
    defaults = tmp_path / "flowmake.yaml"
    defaults.write_text("", encoding="utf-8")
    assert load_config(defaults_path=str(defaults)) == DEFAULT_SETTINGS


def test_invalid_root_type_raises(tmp_path: Path):
    _require_imports()
    defaults = tmp_path / "flowmake.yaml"
    defaults.write_text("- just\n- a\n- list\n", encoding="utf-8")
    with pytest.raises(InvalidConfigRootTypeError):
        load_config(defaults_path=str(defaults))


def test_unsupported_extension_raises(tmp_path: Path):
    _require_imports()
    defaults = tmp_path / "flowmake.toml"
    defaults.write_text("engine = { concurrency = 2 }\n", encoding="utf-8")
    with pytest.raises(UnsupportedConfigFormatError):
        load_config(defaults_path=str(defaults))


def test_type_conflict_raises(tmp_path: Path):
    _require_imports()
    defaults = tmp_path / "flowmake.yaml"
    defaults.write_text("engine: fast\n", encoding="utf-8")
    with pytest.raises(ConfigTypeConflictError):
        load_config(defaults_path=str(defaults))


@pytest.mark.parametrize(
    "name, content",
    [
        ("flowmake.yaml", "engine: [unclosed\n"),
        ("flowmake.json", '{"engine": {"concurrency": 2}'),
    ],
)
def test_unparsable_file_raises(tmp_path: Path, name, content):
    _require_imports()
    defaults = tmp_path / name
    defaults.write_text(content, encoding="utf-8")
    with pytest.raises(MalformedConfigError) as exc:
        load_config(defaults_path=str(defaults))
    assert isinstance(exc.value, ConfigError)
    assert exc.value.details["path"] == str(defaults)
    assert exc.value.details["reason"]


def test_non_utf8_local_file_raises(tmp_path: Path):
    _require_imports()
    local = tmp_path / "flowmake.local.yaml"
    local.write_bytes(b"engine:\n  concurrency: \xff\xfe\n")
    with pytest.raises(MalformedConfigError):
        load_config(local_path=str(local))
