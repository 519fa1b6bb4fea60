from sqlalchemy import (
    Table,
    Column,
    Integer,
    Text,
    BigInteger,
    Numeric,
    Date,
    ForeignKey,
    func,
    )
from sqlalchemy.ext.hybrid import hybrid_property
from sqlalchemy.orm import (
    declarative_base,
    relationship,
    )

Base = declarative_base()

IdType = BigInteger
def IdColumn():
    '''Convenience function: the default Column for object ids.'''
    return Column(IdType, primary_key=True, autoincrement=True)
def IdRefColumn(reference, *args, **kwargs):
    '''Convenience function: the default Column for references to object ids.'''
    return Column(IdType, ForeignKey(reference), *args, **kwargs)

articles_tags_assoc = Table(
    'articles_tags_assoc',
    Base.metadata,
    IdRefColumn('articles.id', name='article_id', primary_key=True),
    IdRefColumn('tags.id', name='tag_id', primary_key=True),
)


class Person(Base):
    __tablename__ = 'people'
    id = IdColumn()
    name = Column(Text)
    age = Column(Integer)

    @hybrid_property
    def display_name(self):
        return self.name.title()

    @display_name.expression
    def display_name(cls):
        return func.upper(cls.name)

    articles = relationship('Article', back_populates='author')
    comments = relationship('Comment', back_populates='author')


class Article(Base):
    __tablename__ = 'articles'
    id = IdColumn()
    title = Column(Text)
    summary = Column(Text)
    content = Column(Text)
    published = Column(Date)
    price = Column(Numeric(10, 2))
    author_id = IdRefColumn('people.id')
    author = relationship('Person', back_populates='articles')
    comments = relationship('Comment', back_populates='article')
    tags = relationship(
        'Tag', secondary=articles_tags_assoc, back_populates='articles'
    )


class Comment(Base):
    __tablename__ = 'comments'
    id = IdColumn()
    content = Column(Text)
    article_id = IdRefColumn('articles.id')
    author_id = IdRefColumn('people.id')
    article = relationship('Article', back_populates='comments')
    author = relationship('Person', back_populates='comments')


class Tag(Base):
    __tablename__ = 'tags'
    id = IdColumn()
    label = Column(Text)
    articles = relationship(
        'Article', secondary=articles_tags_assoc, back_populates='tags'
    )


class UserProfile(Base):
    '''Exercises multi word type tokens and per model overrides.'''
    __tablename__ = 'user_profiles'
    __jsonapi__ = {
        'expose_fields': ['bio'],
    }
    profile_id = IdColumn()
    bio = Column(Text)
    secret = Column(Text)
