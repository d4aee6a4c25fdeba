"""Parser for Windows module-definition files and COFF .drectve linker directives."""

__version__ = "0.1.0"
__all__ = ["errors", "scanner", "statements", "exports", "modulefile", "drectve"]