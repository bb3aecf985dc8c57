"""
Content Validation
==================

Field rules for bones and diagrams. Every check runs before a mutation is
attempted, so a rejected edit never touches the tree.

Bone:
- label: required, 1-100 characters after trimming
- info: optional, up to 500 characters
- metadata: optional, up to 200 characters
- status: optional, one of resolved / issue / pending

Diagram:
- name 1-100, creator 1-50, effect label 1-100 (all trimmed, required)
- effect info and effect string up to 500, effect meta up to 200

Returns:
    (is_valid, error_message) tuples, like the password rules in the auth
    service.
"""

from typing import Iterable, Optional, Tuple

from .models import Bone, BoneStatus, Diagram

LABEL_MAX = 100
INFO_MAX = 500
METADATA_MAX = 200

DIAGRAM_NAME_MAX = 100
CREATOR_MAX = 50
EFFECT_LABEL_MAX = 100
EFFECT_INFO_MAX = 500
EFFECT_META_MAX = 200


def _check_required(value: Optional[str], field_name: str, max_len: int) -> Optional[str]:
    if value is None or not value.strip():
        return f"{field_name} cannot be empty"
    if len(value.strip()) > max_len:
        return f"{field_name} must be {max_len} characters or less"
    return None


def _check_optional(value: Optional[str], field_name: str, max_len: int) -> Optional[str]:
    if value is not None and len(value) > max_len:
        return f"{field_name} must be {max_len} characters or less"
    return None


def validate_bone(bone: Bone, recursive: bool = True) -> Tuple[bool, str]:
    """
    Validate a bone's own fields and, by default, its whole subtree.

    Returns:
        (is_valid, error_message)
    """
    errors = [
        _check_required(bone.label, "Label", LABEL_MAX),
        _check_optional(bone.info, "Info", INFO_MAX),
        _check_optional(bone.metadata, "Metadata", METADATA_MAX),
    ]
    if bone.status is not None and not isinstance(bone.status, BoneStatus):
        errors.append("Status must be one of: resolved, issue, pending")

    errors = [e for e in errors if e]
    if errors:
        prefix = f"Bone '{bone.label.strip()}': " if bone.label and bone.label.strip() else ""
        return False, prefix + "; ".join(errors)

    if recursive:
        for child in bone.children:
            ok, message = validate_bone(child)
            if not ok:
                return False, message

    return True, ""


def validate_bones(bones: Iterable[Bone]) -> Tuple[bool, str]:
    """Validate every bone of a forest."""
    for bone in bones:
        ok, message = validate_bone(bone)
        if not ok:
            return False, message
    return True, ""


def validate_effect(label: Optional[str], info: Optional[str] = None,
                    meta: Optional[str] = None,
                    effect_string: Optional[str] = None) -> Tuple[bool, str]:
    """Validate the effect node's attributes."""
    errors = [
        _check_required(label, "Effect label", EFFECT_LABEL_MAX),
        _check_optional(info, "Effect info", EFFECT_INFO_MAX),
        _check_optional(effect_string, "Effect string", EFFECT_INFO_MAX),
        _check_optional(meta, "Effect meta", EFFECT_META_MAX),
    ]
    errors = [e for e in errors if e]
    if errors:
        return False, "; ".join(errors)
    return True, ""


def validate_diagram(diagram: Diagram) -> Tuple[bool, str]:
    """Validate the flat diagram fields, the effect and the whole bone tree."""
    errors = [
        _check_required(diagram.name, "Diagram name", DIAGRAM_NAME_MAX),
        _check_required(diagram.creator, "Creator name", CREATOR_MAX),
    ]
    errors = [e for e in errors if e]
    if errors:
        return False, "; ".join(errors)

    ok, message = validate_effect(
        diagram.effect_label, diagram.effect_info,
        diagram.effect_meta, diagram.effect_string,
    )
    if not ok:
        return False, message

    return validate_bones(diagram.roots)
