"""CodeForge -- declarative Go code generation.

Callers describe Go constructs (variables, structs, interfaces, functions,
methods) as data; CodeForge renders them to source files, validates them
through a compiler collaborator and optionally writes and builds them.

Subpackages:
    elements   - Typed code elements and their rendering
    blocks     - Reusable building-block templates and their store
    rendering  - Jinja2 template engine and packaged Go templates
    catalog    - Categorised whole-file templates
    generator  - Request parsing, orchestration and result assembly
"""

__version__ = "0.1.0"
