"""Bundle a running EC2 instance into a registered machine image."""

__all__ = (
    "BundleConfig",
    "BundleError",
    "BundleOrchestrator",
    "BundleResult",
    "ConfigStore",
    "ImageInspector",
    "SSHClient",
    "TOOLCHAINS",
    "sanitize_name",
)

_LAZY_IMPORTS = {
    "BundleConfig": (".config", "BundleConfig"),
    "BundleError": (".errors", "BundleError"),
    "BundleOrchestrator": (".orchestrator", "BundleOrchestrator"),
    "BundleResult": (".orchestrator", "BundleResult"),
    "ConfigStore": (".config", "ConfigStore"),
    "ImageInspector": (".aws_images", "ImageInspector"),
    "SSHClient": (".ssh_client", "SSHClient"),
    "TOOLCHAINS": (".toolchain", "TOOLCHAINS"),
    "sanitize_name": (".naming", "sanitize_name"),
}

def __getattr__(name: str):
    if name in _LAZY_IMPORTS:
        module_name, attr_name = _LAZY_IMPORTS[name]
        from importlib import import_module
        module = import_module(module_name, __package__)
        return getattr(module, attr_name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
