"""
Structural hints extracted from source text.

Nothing here is authoritative: regexes pick out namespaces, imports,
controller actions, Eloquent relationships and route tables so the
producer sees how a file relates to the rest of the application.

Cross-file knowledge (routes seen so far, known controllers and models)
lives in an ``AppContext`` that the caller creates once per run and passes
to every ``extract_context`` call.
"""

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

NON_ACTION_METHODS = {"__construct", "__destruct", "middleware"}

RELATIONSHIP_TYPES = [
    "hasMany", "hasOne", "belongsTo", "belongsToMany",
    "hasOneThrough", "hasManyThrough", "morphTo",
    "morphOne", "morphMany", "morphToMany",
]

MODEL_PATTERNS = [
    re.compile(r"extends\s+Model", re.IGNORECASE),
    re.compile(r"class\s+\w+\s+extends\s+\w*Model\b", re.IGNORECASE),
    re.compile(r"use\s+Illuminate\\Database\\Eloquent\\Model", re.IGNORECASE),
    re.compile(r"\$table\s*=", re.IGNORECASE),
    re.compile(r"\$fillable\s*=", re.IGNORECASE),
    re.compile(r"\$guarded\s*=", re.IGNORECASE),
    re.compile(r"hasMany|hasOne|belongsTo|belongsToMany", re.IGNORECASE),
]

_NAMESPACE_RE = re.compile(r"namespace\s+([^;]+);", re.IGNORECASE)
_CLASS_RE = re.compile(r"class\s+(\w+)(?:\s+extends|\s+implements|\s*\{)", re.IGNORECASE)
_IMPORT_RE = re.compile(r"^\s*use\s+([^;]+);", re.IGNORECASE | re.MULTILINE)
_ACTION_RE = re.compile(r"public\s+function\s+(\w+)\s*\([^)]*\)", re.IGNORECASE)

# Route::get('/path', 'Controller@method')
_ROUTE_STRING_RE = re.compile(
    r"""Route::(get|post|put|patch|delete|options|any)\s*\(\s*['"]([^'"]+)['"]\s*,\s*['"]([^@'"]*)@([^'"]*)['"]"""
)
# Route::get('/path', [Controller::class, 'method'])
_ROUTE_ARRAY_RE = re.compile(
    r"""Route::(get|post|put|patch|delete|options|any)\s*\(\s*['"]([^'"]+)['"]\s*,\s*\[\s*([^:,]+)::class\s*,\s*['"]([^'"]+)['"]"""
)
_ROUTE_NAME_RE = re.compile(r"""->name\s*\(\s*['"]([^'"]+)['"]""")


@dataclass
class Route:
    method: str
    path: str
    controller: str
    action: str
    name: str = ""


@dataclass
class Relationship:
    method: str
    type: str
    related: str


@dataclass
class AppContext:
    """Accumulates application-wide structure across one run."""

    source_roots: List[Path] = field(default_factory=list)
    routes: List[Route] = field(default_factory=list)
    controllers: Dict[str, dict] = field(default_factory=dict)
    models: Dict[str, dict] = field(default_factory=dict)


@dataclass
class FileContext:
    """What the producer is told about one file."""

    imports: List[str] = field(default_factory=list)
    related_files: Dict[str, str] = field(default_factory=dict)
    routes: List[Route] = field(default_factory=list)
    is_controller: bool = False
    controller_actions: List[str] = field(default_factory=list)
    is_model: bool = False
    model_relationships: List[Relationship] = field(default_factory=list)
    is_route_file: bool = False
    defined_routes: List[Route] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (
            self.imports or self.related_files or self.routes
            or self.controller_actions or self.model_relationships
            or self.defined_routes
        )


# ---------------------------------------------------------------------------
# Extraction helpers
# ---------------------------------------------------------------------------

def extract_namespace(content: str) -> str:
    match = _NAMESPACE_RE.search(content)
    return match.group(1).strip() if match else ""


def extract_class_name(content: str) -> str:
    match = _CLASS_RE.search(content)
    return match.group(1).strip() if match else ""


def extract_imports(content: str) -> List[str]:
    return [imp.strip() for imp in _IMPORT_RE.findall(content)]


def extract_controller_actions(content: str) -> List[str]:
    return [m for m in _ACTION_RE.findall(content) if m not in NON_ACTION_METHODS]


def is_likely_model(content: str) -> bool:
    return any(pattern.search(content) for pattern in MODEL_PATTERNS)


def extract_model_relationships(content: str) -> List[Relationship]:
    relationships = []
    for rel_type in RELATIONSHIP_TYPES:
        pattern = re.compile(
            r"function\s+(\w+)\s*\([^)]*\)[^{]*{[^}]*\$this->" + rel_type + r"\s*\(\s*([^,\)]+)",
            re.IGNORECASE,
        )
        for method, related in pattern.findall(content):
            relationships.append(Relationship(
                method=method.strip(),
                type=rel_type,
                related=related.strip().strip("'\" \t\n\r\0\x0b"),
            ))
    return relationships


def extract_routes(content: str) -> List[Route]:
    """Read route definitions line by line; ``->name()`` attaches to the previous route."""
    routes: List[Route] = []
    for line in content.split("\n"):
        match = _ROUTE_STRING_RE.search(line) or _ROUTE_ARRAY_RE.search(line)
        if match:
            routes.append(Route(
                method=match.group(1).upper(),
                path=match.group(2),
                controller=match.group(3).strip(),
                action=match.group(4),
            ))
        name_match = _ROUTE_NAME_RE.search(line)
        if name_match and routes:
            routes[-1].name = name_match.group(1)
    return routes


def is_route_file(file_path: str) -> bool:
    name = os.path.basename(file_path)
    return "routes" in file_path.replace("\\", "/").split("/") or name in ("web.php", "api.php")


def find_related_routes(app_context: AppContext, class_name: str, full_class_name: str) -> List[Route]:
    if not class_name:
        return []
    return [
        route for route in app_context.routes
        if route.controller in (class_name, full_class_name)
        or route.controller.rsplit("\\", 1)[-1] == class_name
    ]


def find_file_from_import(import_name: str, source_roots: List[Path]) -> Optional[str]:
    """Map ``App\\Models\\User`` to ``<root>/App/Models/User.php`` or ``<root>/app/Models/User.php``."""
    potential = import_name.split(" as ")[0].strip().replace("\\", "/") + ".php"
    parts = potential.split("/")
    candidates = [potential]
    if parts:
        candidates.append("/".join([parts[0].lower()] + parts[1:]))

    for root in source_roots:
        for candidate in candidates:
            full_path = Path(root) / candidate
            if full_path.is_file():
                return str(full_path)
        # Roots are usually the namespace root itself ('app/' for 'App\\...').
        if len(parts) > 1 and Path(root).name.lower() == parts[0].lower():
            full_path = Path(root) / "/".join(parts[1:])
            if full_path.is_file():
                return str(full_path)
    return None


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def extract_context(file_path, content: str, app_context: AppContext) -> FileContext:
    """Collect hints about one file and record what it defines in ``app_context``."""
    file_path = str(file_path)
    context = FileContext()

    ext = os.path.splitext(file_path)[1].lower().lstrip(".")
    namespace = extract_namespace(content)
    class_name = extract_class_name(content)
    full_class_name = f"{namespace}\\{class_name}" if namespace else class_name

    context.imports = extract_imports(content)

    if ext == "php":
        if is_route_file(file_path):
            context.is_route_file = True
            context.defined_routes = extract_routes(content)
            app_context.routes.extend(context.defined_routes)
        else:
            if "Controller" in file_path or "Controller" in class_name:
                context.is_controller = True
                context.controller_actions = extract_controller_actions(content)
                app_context.controllers[full_class_name] = {
                    "path": file_path,
                    "actions": context.controller_actions,
                }

            if "Model" in file_path or is_likely_model(content):
                context.is_model = True
                context.model_relationships = extract_model_relationships(content)
                app_context.models[full_class_name] = {
                    "path": file_path,
                    "relationships": context.model_relationships,
                }

            context.routes = find_related_routes(app_context, class_name, full_class_name)

    for import_name in context.imports:
        related = find_file_from_import(import_name, app_context.source_roots)
        if related:
            context.related_files[import_name] = related

    return context
