"""
bundleforge.templates - Jinja2 Template Files
=============================================

Templates for the text files of a generated project. They use the ``.j2``
extension and are rendered by :mod:`bundleforge.generator`. JSON files
(``package.json``, ``.babelrc``, ``tsconfig.json``) are not templated:
the generator serializes the synthesized content directly.

Available Templates
-------------------
- webpack.config.js.j2: Webpack configuration (Webpack projects only)
- index.js.j2: Entry module, plain JS, React, Vue or Typescript
- App.vue.j2: Root component of Vue projects
- vue-shim.d.ts.j2: Module declaration for .vue imports in Typescript
- index.html.j2: Page loading the bundle
- styles.j2: One stylesheet per selected styling feature
- gitignore.j2: Git ignore patterns
- README.md.j2: Setup instructions

Template Context
----------------
Every template receives:

    ctx : GenerationContext
        Target, selection, plan and derived flags

    bundleforge_version : str
        Version of bundleforge for attribution
"""

# Templates are loaded by Jinja2's PackageLoader.
