"""Test configuration."""

import pytest
from pathlib import Path
from unittest.mock import Mock
import tempfile
import os

# Test fixtures
@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)

@pytest.fixture
def sample_python_file(temp_dir):
    """Create a sample Python file with security issues."""
    content = '''
import os
import subprocess

# Hardcoded password - security issue
PASSWORD = "secret123"

def unsafe_function(user_input):
    # Command injection vulnerability
    os.system(f"echo {user_input}")

    # SQL injection vulnerability (simulated)
    query = f"SELECT * FROM users WHERE name = '{user_input}'"

    return query

def safe_function():
    return "This is safe"
'''

    file_path = temp_dir / "test_code.py"
    file_path.write_text(content)
    return file_path

@pytest.fixture
def sample_java_project(temp_dir):
    """Create a small JBoss-style Java project."""
    project = temp_dir / "legacy-app"
    source_dir = project / "src" / "main" / "java" / "com" / "example"
    source_dir.mkdir(parents=True)

    (project / "pom.xml").write_text('''<project>
  <modelVersion>4.0.0</modelVersion>
  <groupId>com.example</groupId>
  <artifactId>legacy-app</artifactId>
  <packaging>war</packaging>
</project>
''')

    (source_dir / "UserServlet.java").write_text('''package com.example;

import javax.servlet.http.HttpServlet;
import javax.persistence.EntityManager;

public class UserServlet extends HttpServlet {
    private String password = "changeme123";

    public void find(String name) {
        String query = "SELECT * FROM users WHERE name = '" + name + "'";
        System.out.println("query " + query);
    }
}
''')
    return project

@pytest.fixture
def cloud_ready_file(temp_dir):
    """Create a file that follows cloud-native practices."""
    content = '''
const express = require('express');
const logger = require('./logger');

const port = process.env.PORT;
const redisUrl = process.env.REDIS_URL;

app.get('/health', async (req, res) => {
    logger.info('health check');
    res.send('ok');
});

process.on('SIGTERM', () => server.close());
'''
    file_path = temp_dir / "server.js"
    file_path.write_text(content)
    return file_path

@pytest.fixture
def clean_env(monkeypatch):
    """Remove LLM and NVD settings from the environment."""
    for name in ('LLM_API_KEY', 'LLM_ENDPOINT', 'LLM_MODEL', 'NVD_API_KEY'):
        monkeypatch.delenv(name, raising=False)
    # Keep load_dotenv from picking up a developer's .env
    monkeypatch.setattr('modernizeai.core.config.load_dotenv', lambda *args, **kwargs: False)

@pytest.fixture
def mock_llm_client():
    """LLM client double whose completions are set per test."""
    client = Mock()
    client.simple_completion.return_value = "{}"
    client.get_usage_stats.return_value = {
        'provider': 'openai',
        'model': 'gpt-4o',
        'total_requests': 0,
        'total_tokens': 0,
    }
    return client
