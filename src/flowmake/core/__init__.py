# src/flowmake/core/__init__.py
"""
Core do flowmake.

Implementação canônica e independente da CLI, reunindo as
responsabilidades de declaração, resolução e execução de tarefas.

Componentes principais:
    - tasks        → tipos, registry, condições, declarações e flows padrão
    - config       → resolução de settings (merge, validação, hashing)
    - engine       → composição de flows, ready sets, execução e matrix
    - traceability → Manifest e Event Log para auditoria

Princípios fundamentais:
    - Erros de configuração aparecem antes de qualquer execução
    - A mesma entrada produz sempre o mesmo plano
    - Estado de execução é isolado por run

Limites explícitos:
    - Não depende da CLI
    - Não executa nada na importação
"""
