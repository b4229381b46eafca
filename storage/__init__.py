"""Storage package utilities."""

__all__ = ["CaptureArtifactStore", "CaptureArtifacts", "file_stamp", "probe"]


def __getattr__(name: str):
    if name in {"CaptureArtifactStore", "CaptureArtifacts", "file_stamp"}:
        from storage import artifacts

        return getattr(artifacts, name)
    if name == "probe":
        from storage.diagnostics import probe

        return probe
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
