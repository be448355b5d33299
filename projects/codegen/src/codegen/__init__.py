"""Schema code generation through a remote text-generation service."""

from codegen.cleaning import clean_code_response
from codegen.client import CodeGenerator
from codegen.config import get_dialect, load_config, output_filename
from codegen.prompts import build_prompt
from codegen.types import (
    DATABASE_TYPES,
    CodeGenerationRequest,
    CodeGenerationResponse,
    DatabaseType,
)

__all__ = [
    "DATABASE_TYPES",
    "CodeGenerationRequest",
    "CodeGenerationResponse",
    "CodeGenerator",
    "DatabaseType",
    "build_prompt",
    "clean_code_response",
    "get_dialect",
    "load_config",
    "output_filename",
]
