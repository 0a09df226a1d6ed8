from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Language(str, Enum):
    JAVASCRIPT = "javascript"
    PYTHON = "python"
    JAVA = "java"
    CPP = "cpp"
    CSHARP = "csharp"
    TYPESCRIPT = "typescript"

    @property
    def label(self) -> str:
        return LANGUAGE_LABELS[self]

    @property
    def template(self) -> str:
        return LANGUAGE_TEMPLATES[self]


DEFAULT_LANGUAGE = Language.JAVASCRIPT

LANGUAGE_LABELS = {
    Language.JAVASCRIPT: "JavaScript",
    Language.PYTHON: "Python",
    Language.JAVA: "Java",
    Language.CPP: "C++",
    Language.CSHARP: "C#",
    Language.TYPESCRIPT: "TypeScript",
}

LANGUAGE_TEMPLATES = {
    Language.JAVASCRIPT: (
        "// Write your JavaScript code here\n"
        "function solution() {\n  // Your code here\n}\n\nsolution();"
    ),
    Language.PYTHON: (
        "# Write your Python code here\n"
        "def solution():\n    # Your code here\n    pass\n\nsolution()"
    ),
    Language.JAVA: (
        "// Write your Java code here\n"
        "public class Solution {\n    public static void main(String[] args) {\n"
        "        // Your code here\n    }\n}"
    ),
    Language.CPP: (
        "// Write your C++ code here\n"
        "#include <iostream>\nusing namespace std;\n\n"
        "int main() {\n    // Your code here\n    return 0;\n}"
    ),
    Language.CSHARP: (
        "// Write your C# code here\n"
        "using System;\n\nclass Program {\n    static void Main() {\n"
        "        // Your code here\n    }\n}"
    ),
    Language.TYPESCRIPT: (
        "// Write your TypeScript code here\n"
        "function solution(): void {\n  // Your code here\n}\n\nsolution();"
    ),
}


class ExecutionRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    source_code: str = Field(serialization_alias="sourceCode")
    language: Language


class OutputKind(str, Enum):
    STDOUT = "stdout"
    STDERR = "stderr"
    COMPILE_OUTPUT = "compile_output"
    NONE = "none"


class ExecutionResult(BaseModel):
    """
    A run's outcome reduced to the single stream worth showing.
    """

    model_config = ConfigDict(frozen=True)

    kind: OutputKind
    output: str = ""
    accepted: Optional[bool] = None

    def display_text(self) -> str:
        if self.kind == OutputKind.STDOUT:
            return self.output
        if self.kind == OutputKind.STDERR:
            return f"Error: {self.output}"
        if self.kind == OutputKind.COMPILE_OUTPUT:
            return f"Compilation Error: {self.output}"
        return "Code executed successfully with no output."
