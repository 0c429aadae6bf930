# Configuration file for the Sphinx documentation builder.
#
# For the full list of built-in configuration values, see the documentation:
# https://www.sphinx-doc.org/en/master/usage/configuration.html
import os
import sys

# 告诉Sphinx你的项目代码在哪里 (从conf.py文件往上退一级到项目根目录)
sys.path.insert(0, os.path.abspath('..'))
# -- Project information -----------------------------------------------------
# https://www.sphinx-doc.org/en/master/usage/configuration.html#project-information

project = 'Qfen'
copyright = '2025, LuZhao'
author = 'LuZhao'
release = '1.0'

# -- General configuration ---------------------------------------------------
# https://www.sphinx-doc.org/en/master/usage/configuration.html#general-configuration

extensions = [
    'sphinx.ext.autodoc',  # 核心：从docstrings自动生成文档
    'sphinx.ext.napoleon', # 支持Google/Numpy风格的docstring
    'sphinx.ext.autosummary', # 自动生成API文档
    'sphinx.ext.viewcode', # 在文档中添加源码链接
]

templates_path = ['_templates']
exclude_patterns = []

language = 'zh_CN'

# -- Options for HTML output -------------------------------------------------
# https://www.sphinx-doc.org/en/master/usage/configuration.html#options-for-html-output

autosummary_generate = True #开启自动生成文件功能

# 每次构建时都重新生成存根文件，避免与旧存根内容冲突
autosummary_generate_overwrite = True

# 算法模块依赖 numpy / scipy / scikit-learn，文档构建环境中可以不安装
autodoc_mock_imports = ['numpy', 'scipy', 'sklearn']

# Napoleon 插件设置，确保 Google 风格的 docstrings 被正确解析
napoleon_google_docstring = True

html_theme = 'sphinx_rtd_theme'
html_static_path = ['_static']
