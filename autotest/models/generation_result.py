"""
Generation Result Model
=======================
Outcome of generating tests for one input file.

Fields:
    input_file   — source file the prompt was built from
    output_file  — file the generated tests were written to
    success      — True if the output file was written
    streamed     — True if tokens were appended as they arrived
    error        — error info if the run failed
"""
from pydantic import BaseModel


class GenerationResult(BaseModel):
    input_file: str
    output_file: str
    success: bool = False
    streamed: bool = False
    error: str = ""
