"""
base.py - Abstract base class for all pipeline processors.

This provides a consistent interface for document processing stages.
Each processor can be used independently or composed by the orchestrator.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class BaseProcessor(ABC):
    """
    Abstract base class for pipeline processors.

    All processors must implement:
    - name: Human-readable name for logging
    - stage_name: Stage identifier for tracking (scan, parse)
    - process_document(doc): Process a single document

    Optionally can implement:
    - setup(): One-time initialization
    - teardown(): Cleanup resources
    """

    name: str = "BaseProcessor"
    stage_name: str = "unknown"  # Override in subclasses: scan, parse

    def __init__(self):
        """Initialize the processor."""
        self._initialized = False

    def setup(self) -> None:
        """
        One-time initialization. Override to check external tools, etc.

        Called automatically before first process_document() call if not already done.
        """
        self._initialized = True
        logger.info("✓ %s initialized", self.name)

    def teardown(self) -> None:
        """
        Cleanup resources. Override to release handles, etc.
        """
        self._initialized = False
        logger.info("✓ %s teardown complete", self.name)

    def ensure_setup(self) -> None:
        """Ensure setup() has been called."""
        if not self._initialized:
            self.setup()

    @abstractmethod
    def process_document(self, doc: Dict[str, Any]) -> Dict[str, Any]:
        """
        Process a single document.

        Args:
            doc: Document dictionary with at minimum:
                - id: Document ID
                - filepath: Path to source file

        Returns:
            Dict with:
                - success: bool
                - outcome: Stage result (processor specific)
                - stage: Stage summary from build_stage_info()
                - error: Optional error message
        """
        raise NotImplementedError("Subclasses must implement process_document()")

    def build_stage_info(
        self,
        success: bool,
        error: Optional[str] = None,
        **metadata,
    ) -> Dict[str, Any]:
        """
        Build the summary of this processor's stage for one document.

        Args:
            success: Whether the stage succeeded
            error: Error message if failed
            **metadata: Stage-specific metadata (source_format, report_count, etc.)

        Returns:
            Dict with the stage name, outcome and metadata
        """
        info: Dict[str, Any] = {"stage": self.stage_name, "success": success}
        if error:
            info["error"] = error
        info.update({k: v for k, v in metadata.items() if v is not None})
        return info

    def __enter__(self):
        """Context manager entry."""
        self.setup()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.teardown()
        return False
