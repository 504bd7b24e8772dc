# src/flowmake/core/config/hashing.py
"""
Hashing canônico de estruturas declarativas do flowmake.

O hash gerado representa a identidade estrutural de uma configuração
(settings resolvidos ou declarações de tarefas normalizadas) e é
registrado em `inputs` do Manifest de cada run.

Política:
    - Serialização JSON canônica (chaves ordenadas, separadores compactos)
    - Codificação UTF-8
    - SHA-256
"""


import json
import hashlib
from typing import Dict, Any


def compute_config_hash(config: Dict[str, Any]) -> str:
    """
    Gera um hash determinístico de uma estrutura de configuração.

    Invariantes:
        - O valor retornado é uma string hexadecimal de 64 caracteres
        - Estruturas equivalentes produzem o mesmo hash, independentemente
          da ordem original das chaves
        - Nenhuma mutação ocorre sobre o input

    Args:
        config (Dict[str, Any]): Configuração efetiva.

    Returns:
        str: Hash SHA-256 hexadecimal.

    Raises:
        TypeError: Se o objeto fornecido não for um dicionário.
    """

    if not isinstance(config, dict):
        raise TypeError(
            f"Config para hashing deve ser dict, recebido: {type(config).__name__}"
        )

    canonical_json = json.dumps(
        config,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=str,
    )

    return hashlib.sha256(canonical_json.encode("utf-8")).hexdigest()
