#!/usr/bin/env python3
"""
Startup script for the UV texture painter server
"""

import os
import sys
from pathlib import Path

from dotenv import load_dotenv


def check_environment():
    """Check if environment is properly configured"""
    print("🔍 Checking environment...")

    if Path('.env').exists():
        load_dotenv()
    else:
        print("⚠️  .env file not found, using system environment variables only")

    gemini_key = os.getenv('GEMINI_API_KEY') or os.getenv('GOOGLE_API_KEY')
    if not gemini_key:
        print("❌ GEMINI_API_KEY not found in environment")
        print("   Add GEMINI_API_KEY=your-api-key to your .env file")
        return False
    print("✅ Gemini API key configured")

    print(f"   Detection model: {os.getenv('GEMINI_DETECT_MODEL', 'gemini-2.5-flash')}")
    print(f"   Image model:     {os.getenv('GEMINI_IMAGE_MODEL', 'gemini-2.5-flash-image')}")
    return True


def start_server():
    """Start the Flask server"""
    print("\n🚀 Starting UV Texture Painter...")
    print("=" * 50)

    from app import create_app
    app = create_app()

    host = os.getenv('HOST', '0.0.0.0')
    port = int(os.getenv('PORT', '5000'))

    print("✅ Server starting successfully!")
    print("\n📡 Available endpoints:")
    print(f"   API Health:    http://localhost:{port}/api/v1/health")
    print(f"   Upload:        http://localhost:{port}/api/v1/upload")
    print(f"   Generate:      http://localhost:{port}/api/v1/generate")
    print(f"   Edit:          http://localhost:{port}/api/v1/edit")
    print(f"   Download:      http://localhost:{port}/api/v1/download")
    print("\n" + "=" * 50)

    app.run(debug=os.getenv('FLASK_DEBUG', 'false').lower() == 'true', host=host, port=port)


def main():
    """Main startup function"""
    print("🎨 UV Texture Painter")
    print("=" * 50)

    if not check_environment():
        print("\n❌ Environment check failed. Please fix the issues above.")
        sys.exit(1)

    start_server()


if __name__ == "__main__":
    main()
