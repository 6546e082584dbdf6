"""Test configuration and fixtures for POM Toolkit tests.

This module provides shared sample manifests and filesystem fixtures. All test
files should use the fixtures defined here for consistency.
"""

import logging
import shutil
import sys
import tempfile
from pathlib import Path
from typing import List, Optional, Tuple

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from pom_toolkit.core.document import parse
from pom_toolkit.core.models import Document, Section

# Configure test logging
logging.basicConfig(
    level=logging.DEBUG,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

POM_NS = "http://maven.apache.org/POM/4.0.0"
XSI_NS = "http://www.w3.org/2001/XMLSchema-instance"

SAMPLE_POM = f'''<?xml version="1.0" encoding="UTF-8"?>
<!-- Parent pom, edited by hand -->
<project xmlns="{POM_NS}"
         xmlns:xsi="{XSI_NS}"
         xsi:schemaLocation="{POM_NS} http://maven.apache.org/maven-v4_0_0.xsd">
  <modelVersion>4.0.0</modelVersion>
  <groupId>com.test</groupId>
  <artifactId>test</artifactId>
  <version>1.0.0-SNAPSHOT</version>
  <modules>
    <module>core</module>
    <module>ui.apps</module>
  </modules>
  <properties>
    <aem.version>6.5.12</aem.version>
    <!-- added by hand -->
    <custom.flag>true</custom.flag>
  </properties>
  <dependencyManagement>
    <dependencies>
      <dependency>
        <groupId>com.adobe.aem</groupId>
        <artifactId>uber-jar</artifactId>
        <version>6.5.12</version>
        <scope>provided</scope>
      </dependency>
      <dependency>
        <groupId>com.test</groupId>
        <artifactId>otherdep</artifactId>
        <version>1</version>
      </dependency>
    </dependencies>
  </dependencyManagement>
  <build>
    <plugins>
      <plugin>
        <groupId>org.apache.jackrabbit</groupId>
        <artifactId>filevault-package-maven-plugin</artifactId>
        <configuration combine.self="override" allowIndexDefinitions="true">
          <embeddeds>
            <embedded>
              <groupId>com.test</groupId>
              <artifactId>test.core</artifactId>
              <target>/apps/test-packages/application/install</target>
            </embedded>
          </embeddeds>
        </configuration>
      </plugin>
    </plugins>
  </build>
  <profiles>
    <profile>
      <id>autoInstallPackage</id>
    </profile>
  </profiles>
</project>
'''


def gav(section: Section) -> List[Tuple[Optional[str], Optional[str], Optional[str]]]:
    """(groupId, artifactId, version) of every entry, in order."""
    return [
        (e.child_text("groupId"), e.child_text("artifactId"), e.child_text("version"))
        for e in section.entries
    ]


@pytest.fixture
def temp_dir():
    """Creates a temporary directory for test operations."""
    temp_path = Path(tempfile.mkdtemp())
    yield temp_path
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture(autouse=True)
def isolated_config_dir(temp_dir, monkeypatch):
    """Keep ConfigManager away from the real user configuration directory."""
    config_dir = temp_dir / "config"
    monkeypatch.setenv("POM_TOOLKIT_CONFIG_DIR", str(config_dir))
    return config_dir


@pytest.fixture
def sample_pom_text() -> str:
    return SAMPLE_POM


@pytest.fixture
def sample_document() -> Document:
    return parse(SAMPLE_POM)


@pytest.fixture
def pom_file(temp_dir) -> Path:
    path = temp_dir / "pom.xml"
    path.write_text(SAMPLE_POM, encoding="utf-8")
    return path
