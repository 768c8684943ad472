# ==============================================
# Models (Data Classes)
# ==============================================
#
# PURPOSE:
#   Data classes passed between the AI transpilation stages.
#   Logic lives in the stage modules; these only carry values.
#
# GROUPS:
# -------
# - Target description:   MemoryLayout, GameBoyContext
# - Single transpilation: TranspilationMetadata, TranspilationResult,
#                         PerformanceMetrics, ValidationIssue,
#                         ValidationResult, TranspilationExample
# - Project analysis:     FileImport, CodeChunk, ProjectFile,
#                         ProjectContext
# - Project schema:       TypeDefinition, FunctionSignature,
#                         FileSchema, ProjectSchema
# - Project results:      ChunkResult, ChunkedTranspilationResult,
#                         ProjectMetadata, ProjectTranspilationResult
#
# ==============================================

from dataclasses import dataclass, field, asdict
from typing import Dict, List, Optional


# ----------------------------------------------
# Target description
# ----------------------------------------------

TARGETS = ("dmg", "cgb", "sgb")
OPTIMIZE_MODES = ("size", "speed", "balance")
FEATURES = ("sprites", "background", "sound", "interrupts", "banking", "link", "timer", "serial")


@dataclass
class MemoryLayout:
    """Where the generated code should place its variables."""
    zero_page: List[str] = field(default_factory=list)   # 0xFF80-0xFFFE
    work_ram: List[str] = field(default_factory=list)    # 0xC000-0xDFFF
    rom_bank: int = 1
    ram_bank: Optional[int] = None


@dataclass
class GameBoyContext:
    """
    Hardware target and optimization goal sent along with every prompt.

    project_context carries the cross-file summary when a chunk is
    transpiled as part of a project.
    """
    target: str = "dmg"
    available_ram: int = 8        # KB
    current_bank: int = 1
    features: List[str] = field(default_factory=lambda: ["sprites", "background", "sound", "interrupts"])
    optimize_for: str = "balance"
    memory_layout: Optional[MemoryLayout] = None
    project_context: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)

    def validate(self) -> List[str]:
        """Return problems with target, optimize_for and features (empty when valid)."""
        problems = []
        if self.target not in TARGETS:
            problems.append(f"unknown target '{self.target}' (expected one of {', '.join(TARGETS)})")
        if self.optimize_for not in OPTIMIZE_MODES:
            problems.append(
                f"unknown optimize_for '{self.optimize_for}' (expected one of {', '.join(OPTIMIZE_MODES)})"
            )
        unknown = [feature for feature in self.features if feature not in FEATURES]
        if unknown:
            problems.append(f"unknown features: {', '.join(unknown)}")
        return problems


# ----------------------------------------------
# Single transpilation
# ----------------------------------------------

@dataclass
class TranspilationMetadata:
    original_size: int = 0
    transpiled_size: int = 0
    estimated_rom_size: int = 0
    estimated_ram_usage: int = 0
    warnings: List[str] = field(default_factory=list)
    optimizations: List[str] = field(default_factory=list)


@dataclass
class TranspilationResult:
    c_code: str
    provider: str
    duration: float       # seconds
    cost: float           # USD
    quality: float        # 0.0 - 1.0
    from_cache: bool = False
    metadata: TranspilationMetadata = field(default_factory=TranspilationMetadata)


@dataclass
class PerformanceMetrics:
    estimated_cycles: int = 0
    memory_efficiency: float = 0.0
    size_efficiency: float = 0.0
    overall_score: float = 0.0


@dataclass
class ValidationIssue:
    type: str                 # "error" | "warning" | "info"
    message: str
    line: Optional[int] = None
    suggestion: Optional[str] = None


@dataclass
class ValidationResult:
    valid: bool
    issues: List[ValidationIssue] = field(default_factory=list)
    score: float = 0.0
    estimated_performance: PerformanceMetrics = field(default_factory=PerformanceMetrics)


@dataclass
class TranspilationExample:
    """A past successful conversion, reused as a few-shot example."""
    id: str
    js_code: str
    c_code: str
    context: GameBoyContext
    quality: float
    performance: PerformanceMetrics
    timestamp: float
    provider: str


# ----------------------------------------------
# Project analysis
# ----------------------------------------------

@dataclass
class FileImport:
    module: str
    imports: List[str] = field(default_factory=list)
    is_relative: bool = False


@dataclass
class CodeChunk:
    id: str                   # "<relative path>:<index>"
    content: str
    type: str                 # function | class | interface | global | other
    start_line: int
    end_line: int
    dependencies: List[str] = field(default_factory=list)


@dataclass
class ProjectFile:
    path: str
    relative_path: str
    content: str
    imports: List[FileImport] = field(default_factory=list)
    exports: List[str] = field(default_factory=list)
    size: int = 0
    chunks: Optional[List[CodeChunk]] = None


@dataclass
class ProjectContext:
    files: List[ProjectFile] = field(default_factory=list)
    dependencies: Dict[str, List[str]] = field(default_factory=dict)
    exports: Dict[str, List[str]] = field(default_factory=dict)
    imports: Dict[str, List[FileImport]] = field(default_factory=dict)

    def find_file(self, relative_path: str) -> Optional[ProjectFile]:
        for project_file in self.files:
            if project_file.relative_path == relative_path:
                return project_file
        return None


# ----------------------------------------------
# Project schema
# ----------------------------------------------

@dataclass
class TypeDefinition:
    name: str
    type: str                 # interface | type | class | enum
    definition: str
    file_path: str


@dataclass
class FunctionSignature:
    name: str
    parameters: str
    return_type: str
    file_path: str
    is_exported: bool = False


@dataclass
class FileSchema:
    types: Dict[str, TypeDefinition] = field(default_factory=dict)
    functions: Dict[str, FunctionSignature] = field(default_factory=dict)
    variables: Dict[str, str] = field(default_factory=dict)
    imports: List[FileImport] = field(default_factory=list)
    exports: List[str] = field(default_factory=list)


@dataclass
class ProjectSchema:
    files: Dict[str, FileSchema] = field(default_factory=dict)
    global_types: Dict[str, TypeDefinition] = field(default_factory=dict)
    global_functions: Dict[str, FunctionSignature] = field(default_factory=dict)
    global_variables: Dict[str, str] = field(default_factory=dict)
    dependencies: Dict[str, List[str]] = field(default_factory=dict)
    summary: str = ""


# ----------------------------------------------
# Project results
# ----------------------------------------------

@dataclass
class ChunkResult:
    chunk_id: str
    c_code: str
    cost: float
    duration: float
    quality: float


@dataclass
class ChunkedTranspilationResult:
    file_path: str
    chunks: List[ChunkResult]
    combined_c_code: str
    total_cost: float
    total_duration: float
    average_quality: float


@dataclass
class ProjectMetadata:
    total_files: int = 0
    total_chunks: int = 0
    total_original_size: int = 0
    total_transpiled_size: int = 0
    estimated_rom_size: int = 0
    estimated_ram_usage: int = 0
    dependencies: List[str] = field(default_factory=list)
    optimizations: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class ProjectTranspilationResult:
    files: List[ChunkedTranspilationResult]
    project_c_code: str
    total_cost: float
    total_duration: float
    average_quality: float
    metadata: ProjectMetadata
