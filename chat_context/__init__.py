"""Context attachments for chat and edit sessions.

Subpackages:
- attachments: the attachment store and file admission control
- instructions: prompt instruction attachments and their registry
- prompt_references: reference trees and their aggregated error status

The main types can be imported from here directly:

    from chat_context import AdmissionController, load_config, env_file_limit

    config = load_config()
    controller = AdmissionController(env_file_limit(config))
"""

__version__ = "0.1.0"

# Public name -> (module path, attribute name), imported on first access
_LAZY_IMPORTS = {
    # Attachments
    "AttachmentEntry": (".attachments", "AttachmentEntry"),
    "AttachmentStore": (".attachments", "AttachmentStore"),
    "AdmissionController": (".attachments", "AdmissionController"),
    "FileRange": (".attachments", "FileRange"),
    "as_variable_entry": (".attachments", "as_variable_entry"),
    # Prompt instructions
    "InstructionAttachment": (".instructions", "InstructionAttachment"),
    "InstructionAttachmentRegistry": (".instructions", "InstructionAttachmentRegistry"),
    "InstructionFileReader": (".instructions", "InstructionFileReader"),
    # Reference trees
    "FilePromptReference": (".prompt_references", "FilePromptReference"),
    "ErrorStatus": (".prompt_references", "ErrorStatus"),
    "aggregate_error_conditions": (".prompt_references", "aggregate_error_conditions"),
    # Configuration
    "AttachmentsConfig": (".config_loader", "AttachmentsConfig"),
    "ConfigValidationError": (".config_loader", "ConfigValidationError"),
    "load_config": (".config_loader", "load_config"),
    "env_file_limit": (".config_loader", "env_file_limit"),
}


def __getattr__(name):
    if name in _LAZY_IMPORTS:
        module_path, attr_name = _LAZY_IMPORTS[name]
        import importlib
        module = importlib.import_module(module_path, __name__)
        value = getattr(module, attr_name)
        globals()[name] = value
        return value
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = ["__version__", *_LAZY_IMPORTS]
