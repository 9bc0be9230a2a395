"""
Local type compilation and import specifier rewriting.

Compiles declarations for exposed modules into a single declaration file and
rewrites specifiers that point at exposed local paths to their federated
names, `<federationName>/<exposedName>`.
"""

import asyncio
import logging
import os
import re
import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional

import aiofiles

from config.defaults import MODULE_EXTENSIONS
from ..models.results import CompileResult, SyncAction, SyncOutcome

logger = logging.getLogger(__name__)

# Specifiers in module declarations, static and dynamic imports, and requires
SPECIFIER_PATTERN = re.compile(
    r'''(?P<prefix>\bdeclare\s+module\s+|\bfrom\s+|\bimport\s*\(\s*|\brequire\s*\(\s*|\bimport\s+)'''
    r'''(?P<quote>["'])(?P<specifier>[^"'\n]+)(?P=quote)'''
)


def normalize_module_path(path: str) -> str:
    """Strip `./`, a source extension and a trailing `/index`"""
    normalized = path.strip().replace("\\", "/")
    while normalized.startswith("./"):
        normalized = normalized[2:]
    for extension in MODULE_EXTENSIONS:
        if normalized.endswith(extension):
            normalized = normalized[:-len(extension)]
            break
    if normalized.endswith("/index"):
        normalized = normalized[:-len("/index")]
    return normalized


def build_specifier_map(federation_name: str, exposed_modules: Dict[str, str]) -> Dict[str, str]:
    """
    Map the normalized local path of every exposed module to its federated name.

    The compiler is run with the project as its root directory, so emitted
    module names are project-relative paths and match these keys directly.
    """
    return {
        normalize_module_path(local): f"{federation_name}/{normalize_module_path(exposed)}"
        for local, exposed in exposed_modules.items()
    }


def rewrite_paths_with_exposed_federated_modules(
    federation_name: str,
    exposed_modules: Dict[str, str],
    type_definitions: str
) -> str:
    """
    Rewrite specifiers of exposed local modules to federated module names.

    Specifiers already in federated form are left alone, so running the
    rewrite on its own output returns it unchanged.
    """
    mapping = build_specifier_map(federation_name, exposed_modules)
    targets = set(mapping.values())

    def replace(match: re.Match) -> str:
        specifier = match.group("specifier")
        if specifier in targets:
            return match.group(0)
        target = mapping.get(normalize_module_path(specifier))
        if target is None:
            return match.group(0)
        quote = match.group("quote")
        return f"{match.group('prefix')}{quote}{target}{quote}"

    return SPECIFIER_PATTERN.sub(replace, type_definitions)


class TypeCompiler(ABC):
    """Collaborator that emits declarations for a set of entry points"""

    @abstractmethod
    async def compile(self, entry_points: List[str], out_file: Path) -> CompileResult:
        """Emit declarations for the entry points into out_file"""


class TscTypeCompiler(TypeCompiler):
    """Declaration compiler backed by the TypeScript `tsc` executable"""

    def __init__(self, tsc_path: str = "tsc", project_path: Optional[Path] = None):
        self.tsc_path = tsc_path
        self.project_path = Path(project_path or Path.cwd())

    def build_command(self, entry_points: List[str], out_file: Path) -> List[str]:
        return [
            self.tsc_path,
            "--declaration",
            "--emitDeclarationOnly",
            "--skipLibCheck",
            "--jsx", "react-jsx",
            "--module", "amd",
            "--rootDir", str(self.project_path),
            "--outFile", str(out_file),
            *entry_points,
        ]

    async def compile(self, entry_points: List[str], out_file: Path) -> CompileResult:
        cmd_args = self.build_command(entry_points, out_file)
        logger.debug(f"Running type compiler: {' '.join(cmd_args)}")

        try:
            process = await asyncio.create_subprocess_exec(
                *cmd_args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=self.project_path,
                env=os.environ.copy(),
            )
            stdout, stderr = await process.communicate()
        except FileNotFoundError:
            return CompileResult(is_success=False, diagnostic=f"Type compiler not found: {self.tsc_path}")

        if process.returncode != 0 or not out_file.exists():
            output = (stdout + stderr).decode('utf-8', errors='replace').strip()
            logger.debug(f"Type compiler exited with code {process.returncode}: {output}")
            return CompileResult(is_success=False, diagnostic=output)

        async with aiofiles.open(out_file, 'r', encoding='utf-8') as f:
            type_definitions = await f.read()

        return CompileResult(is_success=True, type_definitions=type_definitions)


class LocalTypeCompiler:
    """
    Compile exposed module declarations and rewrite them to federated names.

    Compiles run one at a time. A request arriving while one compile runs is
    queued; further requests while one is queued are dropped.
    """

    def __init__(
        self,
        compiler: TypeCompiler,
        federation_name: str,
        logger_hint: str = ""
    ):
        self.compiler = compiler
        self.federation_name = federation_name
        self.logger_hint = logger_hint

        self._lock = asyncio.Lock()
        self._queued = False

    async def compile(self, exposed_modules: Dict[str, str], output_path: Path) -> SyncOutcome:
        """
        Compile declarations for exposed modules into output_path.

        Args:
            exposed_modules: local module path -> exposed name
            output_path: Declaration file to emit

        Returns:
            SyncOutcome of the compile (skipped when dropped)
        """
        queued = self._lock.locked()
        if queued:
            if self._queued:
                logger.debug("Compile already queued, dropping request")
                return SyncOutcome(
                    action=SyncAction.COMPILE,
                    success=True,
                    skipped=True,
                    diagnostic="compile already queued"
                )
            self._queued = True

        async with self._lock:
            if queued:
                self._queued = False
            return await self._compile(exposed_modules, output_path)

    async def _compile(self, exposed_modules: Dict[str, str], output_path: Path) -> SyncOutcome:
        start_time = time.perf_counter()
        output_path.parent.mkdir(parents=True, exist_ok=True)

        try:
            result = await self.compiler.compile(list(exposed_modules), output_path)
        except Exception as e:
            logger.warning(f"Failed to compile types for exposed modules: {e}. {self.logger_hint}".rstrip())
            return SyncOutcome.error_result(SyncAction.COMPILE, diagnostic=str(e))

        if not result.is_success:
            logger.warning(f"Failed to compile types for exposed modules. {self.logger_hint}".rstrip())
            return SyncOutcome.error_result(
                SyncAction.COMPILE,
                diagnostic=result.diagnostic or "type compilation failed"
            )

        rewritten = rewrite_paths_with_exposed_federated_modules(
            self.federation_name, exposed_modules, result.type_definitions
        )
        async with aiofiles.open(output_path, 'w', encoding='utf-8') as f:
            await f.write(rewritten)

        processing_time = (time.perf_counter() - start_time) * 1000
        logger.info(f"Compiled types for {len(exposed_modules)} exposed module(s) to {output_path}")
        return SyncOutcome.success_result(SyncAction.COMPILE, processing_time_ms=processing_time)
