"""Berlin — an incremental static-site builder.

Turns markdown and org notes, a CSV reading list, stylesheets with
``@import`` chains and Jinja2 templates into a static site, once or
continuously while watching the sources.

Quick start::

    import berlin

    berlin.build("my-site/")

Two modes::

    berlin.build("my-site/")      # Build once
    berlin.watch("my-site/")      # Build, then rebuild what each change affects

"""

__version__ = "0.1.0"
__all__ = [
    "BuildConfig",
    "__version__",
    "build",
    "watch",
]


def __getattr__(name: str) -> object:
    """Lazy imports for the public API.

    Keeps ``import berlin`` fast while providing a clean top-level API.
    """
    if name == "BuildConfig":
        from berlin.config import BuildConfig

        return BuildConfig

    if name == "build":
        from berlin.app import build

        return build

    if name == "watch":
        from berlin.app import watch

        return watch

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
