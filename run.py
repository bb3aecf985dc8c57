"""
Fishbone Diagrams - Main Runner Script
======================================

Properly run any module from the project root.
Handles Python path setup automatically.

Usage:
    python run.py api            # Start the diagram API (uvicorn)
    python run.py export <id>    # Export a diagram to SVG/PNG
    python run.py test           # Smoke-test imports, layout and logging
"""

import sys
import os

# Add project root to Python path
PROJECT_ROOT = os.path.dirname(os.path.abspath(__file__))
sys.path.insert(0, PROJECT_ROOT)


def main():
    """Main entry point"""

    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(1)

    command = sys.argv[1].lower()

    # Remove command from sys.argv so submodules get correct args
    sys.argv = [sys.argv[0]] + sys.argv[2:]

    try:
        if command == 'api':
            import uvicorn

            port = int(os.getenv('PORT', '3000'))
            uvicorn.run('apps.diagram_portal.api.main:app', host='0.0.0.0', port=port,
                        reload='--reload' in sys.argv)

        elif command == 'export':
            from scripts.export_diagram import main as export_main
            sys.exit(export_main(sys.argv[1:]))

        elif command == 'test':
            print("Running system checks...\n")
            from fishbone.diagram.models import Bone, Diagram
            from fishbone.layout import compute_layout
            from fishbone.utils import safe_logging
            print("[OK] All modules imported successfully")

            print("\nTesting layout...")
            diagram = Diagram.new("Smoke test", "run.py", "anonymous", "Late delivery",
                                  roots=(Bone("People"), Bone("Process")))
            primitives = compute_layout(diagram, 1000, 600)
            print(f"[OK] Layout produced {len(primitives)} primitives")

            print("\nTesting safe logging...")
            logger = safe_logging.get_safe_logger(__name__)
            logger.info("Test log message", email="someone@example.com")
            print("[OK] Logging system works")

            print("\nAll checks passed!")

        else:
            print(f"Unknown command: {command}")
            print(__doc__)
            sys.exit(1)

    except KeyboardInterrupt:
        print("\n\nInterrupted by user")
        sys.exit(0)
    except Exception as e:
        print(f"\n[ERROR] {str(e)}")
        import traceback
        traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
