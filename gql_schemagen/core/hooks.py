"""Extension points around a compilation pass.

A pre-generation hook sees the Source Model between extraction and
resolution and returns the model to resolve, so it can narrow a unit
without touching the host metadata. A post-generation hook sees each
emitted module after it has been checked to parse.

Example usage:
    from gql_schemagen.core.hooks import HookRunner, SelectDeclarationsHook

    hooks = HookRunner(pre_hooks=[SelectDeclarationsHook(exclude=["Internal*"])])
    compile_unit(unit, hooks=hooks)
"""

from fnmatch import fnmatchcase
from typing import Iterable, Protocol, runtime_checkable

from .ir import SourceModel


@runtime_checkable
class PreGenerateHook(Protocol):
    """Rewrites the Source Model before resolution.

    The model passed in is shared with the caller; return a new one built
    with ``SourceModel.replace`` instead of mutating it.
    """

    def pre_generate(self, model: SourceModel) -> SourceModel:
        ...


@runtime_checkable
class PostGenerateHook(Protocol):
    """Rewrites the text of an emitted schema module.

    Example:
        class FormatWithBlack:
            def post_generate(self, filename: str, content: str) -> str:
                import black
                return black.format_str(content, mode=black.FileMode())
    """

    def post_generate(self, filename: str, content: str) -> str:
        ...


class SelectDeclarationsHook:
    """Keep only the declarations whose names match shell-style patterns.

    A declaration survives when it matches any ``include`` pattern (or no
    include patterns are given) and matches no ``exclude`` pattern.
    Matching is case-sensitive. Dropping a declaration that another one
    still references makes that reference unresolved.
    """

    def __init__(self, include: Iterable[str] = (), exclude: Iterable[str] = ()):
        self.include = tuple(include)
        self.exclude = tuple(exclude)

    def selects(self, name: str) -> bool:
        if self.include and not any(fnmatchcase(name, p) for p in self.include):
            return False
        return not any(fnmatchcase(name, p) for p in self.exclude)

    def pre_generate(self, model: SourceModel) -> SourceModel:
        return model.replace(d for d in model.declarations if self.selects(d.name))


class HookRunner:
    """The pre and post hooks of a pass, applied in registration order."""

    def __init__(
        self,
        pre_hooks: Iterable[PreGenerateHook] = (),
        post_hooks: Iterable[PostGenerateHook] = (),
    ):
        self.pre_hooks: list[PreGenerateHook] = []
        self.post_hooks: list[PostGenerateHook] = []
        for hook in pre_hooks:
            self.add_pre_hook(hook)
        for hook in post_hooks:
            self.add_post_hook(hook)

    def add_pre_hook(self, hook: PreGenerateHook):
        if not isinstance(hook, PreGenerateHook):
            raise TypeError(f"{type(hook).__name__} has no pre_generate method")
        self.pre_hooks.append(hook)

    def add_post_hook(self, hook: PostGenerateHook):
        if not isinstance(hook, PostGenerateHook):
            raise TypeError(f"{type(hook).__name__} has no post_generate method")
        self.post_hooks.append(hook)

    def run_pre_hooks(self, model: SourceModel) -> SourceModel:
        for hook in self.pre_hooks:
            model = hook.pre_generate(model)
        return model

    def run_post_hooks(self, filename: str, content: str) -> str:
        for hook in self.post_hooks:
            content = hook.post_generate(filename, content)
        return content
