"""
Bundled Guidance Packs

Ready-made policy and persona documents shipped with the package. A pack
is declared in `manifest.yaml` under the packs root; document paths in
the manifest are relative to that root.
"""

import logging
from pathlib import Path, PurePosixPath
from typing import Any, Dict, List, Optional, Tuple, Union

import yaml

from ..exceptions import BundledPackNotFoundError
from ..models.guidance import DEFAULT_PACK_VERSION, BundledPack, BundledPackInfo, GuidanceDocument


logger = logging.getLogger(__name__)

PACKS_DIR = Path(__file__).parent / 'packs'
MANIFEST_NAME = 'manifest.yaml'


def _entry_paths(entry: Dict[str, Any], kind: str) -> List[str]:
    paths = entry.get('paths')
    if not isinstance(paths, dict) or not isinstance(paths.get(kind), list):
        return []
    return [str(p) for p in paths[kind]]


def _document_title(path: str) -> str:
    name = PurePosixPath(path).name
    return name[:-3] if name.endswith('.md') else name


def render_pack_markdown(title: str, description: str, version: str,
                         policies: List[GuidanceDocument], personas: List[GuidanceDocument]) -> str:
    """Join a pack's documents under Policies and Personas sections."""
    lines = [f'# {title}', '', description, '', f'**Version**: {version}', '', '## Policies']
    lines.extend(f'\n### {_document_title(doc.path)}\n\n{doc.content}' for doc in policies)
    lines.extend(['', '## Personas'])
    lines.extend(f'\n### {_document_title(doc.path)}\n\n{doc.content}' for doc in personas)
    return '\n'.join(lines)


class BundledPackLoader:
    """
    Reads bundled packs from a packs root.

    The manifest is read on every call so edits to the packs root are
    picked up without a restart.
    """

    def __init__(self, root: Optional[Union[str, Path]] = None):
        self.root = Path(root) if root else PACKS_DIR

    @property
    def manifest_path(self) -> Path:
        return self.root / MANIFEST_NAME

    def load_manifest(self) -> Dict[str, Any]:
        """
        Parse the manifest.

        Raises:
            FileNotFoundError: no manifest under the root
            ValueError: manifest is not YAML or not a mapping of pack ids
        """
        if not self.manifest_path.exists():
            raise FileNotFoundError(f"Bundled pack manifest not found: {self.manifest_path}")

        try:
            with open(self.manifest_path, 'r', encoding='utf-8') as f:
                manifest = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Failed to parse bundled pack manifest: {e}") from e

        if not isinstance(manifest, dict):
            raise ValueError("Bundled pack manifest must map pack ids to pack entries")
        return {str(pack_id): entry if isinstance(entry, dict) else {} for pack_id, entry in manifest.items()}

    def list_packs(self) -> List[BundledPackInfo]:
        """Metadata for every pack; empty when the manifest is missing or unreadable."""
        try:
            manifest = self.load_manifest()
        except FileNotFoundError:
            logger.debug(f"No bundled pack manifest under {self.root}")
            return []
        except ValueError as e:
            logger.warning(str(e))
            return []

        return [
            BundledPackInfo(
                id=pack_id,
                title=str(entry.get('title') or ''),
                description=str(entry.get('description') or ''),
                version=str(entry.get('version') or DEFAULT_PACK_VERSION),
                policies=_entry_paths(entry, 'policies'),
                personas=_entry_paths(entry, 'personas'),
            )
            for pack_id, entry in manifest.items()
        ]

    def validate_pack(self, pack_id: str, entry: Dict[str, Any]) -> List[str]:
        """Structural and file checks for one manifest entry; returns error messages."""
        errors = []
        if not str(entry.get('title') or '').strip():
            errors.append(f"Pack {pack_id}: title is required")
        if not str(entry.get('description') or '').strip():
            errors.append(f"Pack {pack_id}: description is required")

        paths = entry.get('paths')
        if not isinstance(paths, dict):
            errors.append(f"Pack {pack_id}: paths object is required")
            return errors
        for kind in ('policies', 'personas'):
            if not isinstance(paths.get(kind), list):
                errors.append(f"Pack {pack_id}: paths.{kind} must be an array")

        for path in _entry_paths(entry, 'policies') + _entry_paths(entry, 'personas'):
            document = self.root / path
            if not document.is_file():
                errors.append(f"Pack {pack_id}: file not found: {path}")
            elif not self._read(path).strip():
                errors.append(f"Pack {pack_id}: file is empty: {path}")
        return errors

    def get_pack(self, pack_id: str) -> BundledPack:
        """
        Load a pack with its documents and validation result.

        Raises:
            BundledPackNotFoundError: no pack under `pack_id`
            FileNotFoundError: no manifest under the root
        """
        manifest = self.load_manifest()
        if pack_id not in manifest:
            raise BundledPackNotFoundError(pack_id)

        entry = manifest[pack_id]
        errors = self.validate_pack(pack_id, entry)
        if errors:
            logger.warning(f"Bundled pack {pack_id} has {len(errors)} validation errors")

        title = str(entry.get('title') or '')
        description = str(entry.get('description') or '')
        version = str(entry.get('version') or DEFAULT_PACK_VERSION)
        policies = [GuidanceDocument(p, self._read(p)) for p in _entry_paths(entry, 'policies')]
        personas = [GuidanceDocument(p, self._read(p)) for p in _entry_paths(entry, 'personas')]

        return BundledPack(
            id=pack_id,
            title=title,
            description=description,
            version=version,
            policies=policies,
            personas=personas,
            combined_markdown=render_pack_markdown(title, description, version, policies, personas),
            validation_errors=errors,
        )

    def validate_all(self) -> Dict[str, Any]:
        """Validate every pack in the manifest."""
        manifest = self.load_manifest()
        valid, invalid = [], []
        for pack_id, entry in manifest.items():
            errors = self.validate_pack(pack_id, entry)
            if errors:
                invalid.append({'packId': pack_id, 'errors': errors})
            else:
                valid.append(pack_id)
        return {'valid': valid, 'invalid': invalid, 'total': len(manifest)}

    def _read(self, path: str) -> str:
        document = self.root / path
        if not document.is_file():
            return ''
        try:
            return document.read_text(encoding='utf-8')
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Failed to read bundled document {path}: {e}")
            return ''


def list_bundled(root: Optional[Union[str, Path]] = None) -> List[BundledPackInfo]:
    return BundledPackLoader(root).list_packs()


def get_bundled_pack(pack_id: str, root: Optional[Union[str, Path]] = None) -> BundledPack:
    return BundledPackLoader(root).get_pack(pack_id)


def validate_bundled_pack(pack_id: str, entry: Dict[str, Any],
                          root: Optional[Union[str, Path]] = None) -> Tuple[bool, List[str]]:
    """Validate one manifest entry; returns (is_valid, errors)."""
    errors = BundledPackLoader(root).validate_pack(pack_id, entry)
    return not errors, errors


def validate_all_bundled_packs(root: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
    return BundledPackLoader(root).validate_all()
